"""
Waymark - Blog sample

Demonstrates annotated operations, verb restrictions and path variables.
Run with: uv run uvicorn sample:app --reload
"""


import logging

from waymark import AppConfig, Resource, Waymark, api, http_method

# =============================================================================
# Application Setup
# =============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S%z",
)
logger = logging.getLogger("waymark.sample")

POSTS: dict[str, dict[str, str]] = {
    "1": {"title": "Hello, Waymark"},
}


# =============================================================================
# Resources
# =============================================================================


class Blog(Resource):
    """Posts: one pattern served by different operations per verb."""

    @api("post/new")
    @http_method("GET")
    def new_post(self) -> None:
        self.response({"form": ["title"]})

    @api("post/new")
    @http_method("POST,DELETE")
    def save_new_post(self) -> None:
        if self.context.verb == "DELETE":
            self.response({"discarded": True})
            return
        data = self.context.json() or {}
        post_id = str(len(POSTS) + 1)
        POSTS[post_id] = {"title": data.get("title", "")}
        self.response({"id": post_id}, status_code=201)

    @api("post/$id/edit")
    def edit_post(self, id: str) -> None:
        post = POSTS.get(id)
        if post is None:
            self.response({"message": f"No post {id}"}, status_code=404)
            return
        self.response({"id": id, **post})

    @api("post/$id/comment/$comment;post/$id/comments/$comment")
    @http_method("GET")
    def comment(self, id: str, comment: str) -> dict:
        # Returned values are sent when no response was written
        return {"post": id, "comment": comment}


class Contacts(Resource):

    @api("contacts/new")
    def new_contact(self) -> str:
        return "new"


app: Waymark = Waymark(
    resources=[Blog, Contacts],
    config=AppConfig.from_env(title="Waymark Blog", version="0.1.0"),
)


# =============================================================================
# Main Entry Point
# =============================================================================


def main() -> None:
    """Run the sample application."""
    for route in app.routes:
        logger.info("%-40s %s", route.pattern, ",".join(sorted(route.verbs)) or "*")

    app.run()


if __name__ == "__main__":
    main()
