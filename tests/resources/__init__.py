"""Resource classes used by the test suite."""
