"""jdocmap: Javadoc extraction and cursor-to-member lookup for Java sources."""

__version__ = "0.1.0"
