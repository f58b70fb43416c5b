"""drafts-cli - command line access to Drafts, plus its demo video."""

__version__ = "0.2.0"
