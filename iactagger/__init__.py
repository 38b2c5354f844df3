"""Tag Serverless Framework functions with traceability tags, editing files line by line."""

__version__ = "9.9.9"