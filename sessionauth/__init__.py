"""SessionAuth - username/password authentication with refresh-token sessions."""

__version__ = "1.0.0"
