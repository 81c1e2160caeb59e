"""Client library for the hShop catalogue, result codes and a template renderer."""

__version__ = "1.3.7"