"""seoforge: uniqueness-checked SEO content generation."""

__version__ = "0.1.0"
