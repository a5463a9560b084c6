"""Client library for the Aegean Cloud Engine API: keys, domains, email, logs and sites."""

__version__ = "0.1.0"