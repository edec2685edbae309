__version__ = "0.2.0"
__git_revision__ = ""
