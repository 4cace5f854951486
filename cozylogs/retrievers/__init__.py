"""Retrievers: turn a URL into zero or more raw text bodies."""

from .files import AttachmentRetriever, LocalFileRetriever
from .paste_hosts import GistRetriever, MclogsRetriever, PastebinRetriever

DEFAULT_RETRIEVER_CLASSES = [
    AttachmentRetriever,
    PastebinRetriever,
    MclogsRetriever,
    GistRetriever,
    LocalFileRetriever,
]

__all__ = [
    "AttachmentRetriever",
    "DEFAULT_RETRIEVER_CLASSES",
    "GistRetriever",
    "LocalFileRetriever",
    "MclogsRetriever",
    "PastebinRetriever",
]
