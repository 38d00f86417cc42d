"""Design Review Pipeline - ranked, research-validated design feedback."""

__version__ = "0.1.0"
