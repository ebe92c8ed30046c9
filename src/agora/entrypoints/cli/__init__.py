"""The ``agora`` command-line interface."""
