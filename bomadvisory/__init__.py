"""bomadvisory - platform BOM analysis and CVE fix mapping."""

__version__ = "1.0.0"
