from .links import extract_links, merge_links
from .pipeline import analyze, analyze_body, run_parsers, run_processors, run_retrievers

__all__ = ["analyze", "analyze_body", "extract_links", "merge_links", "run_parsers", "run_processors", "run_retrievers"]
