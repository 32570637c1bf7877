"""liftstore command line interface."""
