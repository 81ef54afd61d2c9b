"""auditlens - compliance scoring and analytics for accessibility scans."""

__version__ = "1.0.0"
