"""WooCommerce product export -> WPML per-language translation tool."""

__version__ = "0.1.0"
