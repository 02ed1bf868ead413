"""Sample application analyzed by the generator tests."""
