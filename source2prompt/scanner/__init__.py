"""Scanner module for project tree traversal."""

from .filesystem import DirectoryWalker, scan_project, walk_directory
from .gate import ConcurrencyGate
from .ignore import IgnoreRule, load_ignore_rule, should_ignore
from .models import FileCategory, FileNode, ScanProgress, ScanSnapshot
from .progress import ProgressReporter
from .scanner import Scanner

__all__ = [
    "ConcurrencyGate",
    "DirectoryWalker",
    "FileCategory",
    "FileNode",
    "IgnoreRule",
    "ProgressReporter",
    "ScanProgress",
    "ScanSnapshot",
    "Scanner",
    "load_ignore_rule",
    "scan_project",
    "should_ignore",
    "walk_directory",
]
