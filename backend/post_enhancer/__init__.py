"""Post Enhancer: enrich freshly published WordPress posts with a generated
featured image, a related YouTube embed and SEO meta."""

__version__ = "1.1.0"
