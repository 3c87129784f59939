"""Domain services: payload normalization, SEO injection, templates and sitemap."""
