"""
Filesystem tools for Ollama Agent.

All tools run against an in-memory MockFileSystem: nested dicts are directories,
strings are file contents. Nothing here touches the real disk.
"""

import copy
import json
from typing import Iterator, Optional, Union

from ollama_agent.tools.base import Tool, ToolParameter, ToolResult
from ollama_agent.utils.logging import logger

Node = Union[str, dict]

ROOT_PATHS = (".", "/", "")

DEFAULT_FILESYSTEM: dict[str, Node] = {
    "README.md": "# Ollama Agent\n\nThis is a demonstration of tool usage with Ollama models.",
    "package.json": json.dumps({"name": "ollama-agent", "version": "1.0.0"}, indent=2),
    "src/": {
        "main.ts": 'console.log("Hello from Ollama Agent");',
        "utils/": {
            "helpers.ts": 'export const helper = () => "Helper function";',
        },
    },
    "docs/": {
        "guide.md": "# User Guide\n\nHow to use the Ollama Agent tools.",
        "api.md": "# API Reference\n\nTool documentation.",
    },
}


def _tag(node: Node) -> str:
    return "DIR" if isinstance(node, dict) else "FILE"


def _join(parent: str, name: str) -> str:
    if not parent:
        return name
    if parent.endswith("/"):
        return f"{parent}{name}"
    return f"{parent}/{name}"


class MockFileSystem:
    """
    Read-only view over a nested mapping.

    Lookups are exact against the top-level keys, so "src/" is a directory
    while "src" is not found.
    """

    def __init__(self, tree: Optional[dict[str, Node]] = None):
        self._tree = copy.deepcopy(tree if tree is not None else DEFAULT_FILESYSTEM)

    @staticmethod
    def is_root(path: str) -> bool:
        return path in ROOT_PATHS

    def lookup(self, path: str) -> Optional[Node]:
        if self.is_root(path):
            return self._tree
        return self._tree.get(path)

    def top_level(self) -> dict[str, Node]:
        return self._tree

    def walk(self, node: dict[str, Node], prefix: str = "") -> Iterator[tuple[str, str, Node]]:
        """Yield (name, full_path, node) depth-first in insertion order."""
        for name, child in node.items():
            full_path = _join(prefix, name)
            yield name, full_path, child
            if isinstance(child, dict):
                yield from self.walk(child, full_path)


def _list_entries(node: dict[str, Node]) -> str:
    return "\n".join(f"{_tag(child)}: {name}" for name, child in node.items())


class ReadFileTool(Tool):
    """Read contents of a file."""

    def __init__(self, filesystem: MockFileSystem):
        super().__init__(
            name="read_file",
            description="Read the contents of a file",
            parameters=[
                ToolParameter(
                    name="path",
                    type="string",
                    description="The file path to read",
                    required=True,
                ),
            ],
        )
        self.filesystem = filesystem

    def execute(self, path: str) -> ToolResult:
        content = None if self.filesystem.is_root(path) else self.filesystem.lookup(path)

        if content is None:
            return ToolResult.failure(self.name, f"File not found: {path}")

        if isinstance(content, dict):
            return ToolResult.failure(self.name, f"Path is a directory, not a file: {path}")

        logger.info(f"Read file: {path} ({len(content)} chars)")
        return ToolResult(name=self.name, result=content)


class ReadDirectoryTool(Tool):
    """List contents of a directory."""

    def __init__(self, filesystem: MockFileSystem):
        super().__init__(
            name="read_directory",
            description="List the contents of a directory",
            parameters=[
                ToolParameter(
                    name="path",
                    type="string",
                    description="The directory path to read",
                    required=False,
                    default=".",
                ),
            ],
        )
        self.filesystem = filesystem

    def execute(self, path: str = ".") -> ToolResult:
        if self.filesystem.is_root(path):
            return ToolResult(name=self.name, result=_list_entries(self.filesystem.top_level()))

        node = self.filesystem.lookup(path)

        if node is None:
            return ToolResult.failure(self.name, f"Directory not found: {path}")

        if not isinstance(node, dict):
            return ToolResult.failure(self.name, f"Path is a file, not a directory: {path}")

        logger.info(f"Listed directory: {path} ({len(node)} items)")
        return ToolResult(name=self.name, result=_list_entries(node))


class SearchFilesTool(Tool):
    """Search entries by name."""

    def __init__(self, filesystem: MockFileSystem):
        super().__init__(
            name="search_files",
            description="Search for files by name or pattern",
            parameters=[
                ToolParameter(
                    name="query",
                    type="string",
                    description="The search query or pattern",
                    required=True,
                ),
                ToolParameter(
                    name="path",
                    type="string",
                    description="The directory to search in",
                    required=False,
                    default=".",
                ),
            ],
        )
        self.filesystem = filesystem

    def execute(self, query: str, path: str = ".") -> ToolResult:
        needle = query.lower()
        matches = []

        if self.filesystem.is_root(path):
            start, prefix = self.filesystem.top_level(), ""
        else:
            start, prefix = self.filesystem.lookup(path), path

        # A missing or file start point simply has nothing to search.
        if isinstance(start, dict):
            for name, full_path, node in self.filesystem.walk(start, prefix):
                if needle in name.lower():
                    matches.append(f"{_tag(node)}: {full_path}")

        logger.info(f"Searched for '{query}' under {path}: {len(matches)} matches")

        if not matches:
            return ToolResult(name=self.name, result=f"No files found matching: {query}")
        return ToolResult(name=self.name, result="\n".join(matches))


def filesystem_tools(filesystem: MockFileSystem) -> list[Tool]:
    return [
        ReadFileTool(filesystem),
        ReadDirectoryTool(filesystem),
        SearchFilesTool(filesystem),
    ]
