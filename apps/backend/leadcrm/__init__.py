"""Leadership programs CRM backend: leads, applications and the program advisor chat."""

__version__ = "1.0.0"
