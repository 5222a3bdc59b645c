"""
Keyword heuristics that map a user message to a tool call in Simulated mode.

With no live model to decide, the controller asks this detector whether the
message looks like a tool request. Patterns run against the trimmed,
lower-cased text; patterns that capture a path run case-insensitively on the
trimmed text itself so the path keeps its case.
"""

import re
from typing import Optional

ToolIntent = tuple[str, dict]

# Lower-cased names users type for fixture files with upper-case names
PATH_ALIASES = {
    "readme": "README.md",
    "readme.md": "README.md",
}

_PATH = r"([\w.\-/]+)"


class IntentDetector:
    """Detect which demo tool, if any, a message asks for."""

    DEFAULT_READ_PATH = "README.md"

    def detect(self, message: str) -> Optional[ToolIntent]:
        """
        Args:
            message: Raw user text

        Returns:
            (tool_name, parameters) or None when the message should get a plain reply
        """
        original = message.strip()
        msg = original.lower()
        if not msg:
            return None

        if self._matches_time(msg):
            return "get_current_time", {"format": self._time_format(msg)}

        if self._matches_date(msg):
            return "get_current_date", {"format": self._date_format(msg)}

        if self._matches_agent_info(msg):
            return "get_agent_info", {}

        search = self._match_search(original)
        if search:
            params = {"query": search.group(1)}
            if search.group(2):
                params["path"] = self._directory_path(search.group(2))
            return "search_files", params

        if self._matches_list(msg):
            return "read_directory", {"path": self._extract_directory(original)}

        read = self._match_read(original)
        if read:
            return "read_file", {"path": self._resolve_file(read.group(1))}

        if re.search(r"\breadme\b", msg):
            return "read_file", {"path": self.DEFAULT_READ_PATH}

        return None

    # === Pattern Matching Methods ===

    def _matches_time(self, msg: str) -> bool:
        patterns = [
            r"\bwhat time\b",
            r"\b(current|the) time\b",
            r"\btime is it\b",
            r"\btime now\b",
        ]
        return any(re.search(p, msg) for p in patterns)

    def _matches_date(self, msg: str) -> bool:
        patterns = [
            r"\bwhat date\b",
            r"\btoday'?s date\b",
            r"\b(current|the) date\b",
            r"\bwhat day\b",
            r"\bdate today\b",
        ]
        return any(re.search(p, msg) for p in patterns)

    def _matches_agent_info(self, msg: str) -> bool:
        patterns = [
            r"\bwho are you\b",
            r"\bwhat are you\b",
            r"\bagent info",
            r"\babout yourself\b",
            r"\bwhat can you do\b",
            r"\bwhat tools\b",
        ]
        return any(re.search(p, msg) for p in patterns)

    def _match_search(self, text: str) -> Optional[re.Match]:
        pattern = (
            r"\b(?:search|find|look)\s+(?:for\s+)?(?:files?\s+)?"
            r"(?:named\s+|called\s+|matching\s+)?[\"']?" + _PATH + r"[\"']?"
            r"(?:\s+in\s+(?:the\s+)?" + _PATH + r")?"
        )
        return re.search(pattern, text, re.IGNORECASE)

    def _matches_list(self, msg: str) -> bool:
        patterns = [
            r"\b(list|show|what)\b.{0,20}\b(files|directory|directories|folder|folders|contents)\b",
            r"^ls\b",
            r"\bwhat'?s in\b",
        ]
        return any(re.search(p, msg) for p in patterns)

    def _match_read(self, text: str) -> Optional[re.Match]:
        pattern = (
            r"\b(?:read|open|cat|show me|display|contents of)\s+"
            r"(?:the\s+)?(?:file\s+)?[\"']?" + _PATH
        )
        return re.search(pattern, text, re.IGNORECASE)

    # === Parameter Extraction ===

    def _time_format(self, msg: str) -> str:
        if re.search(r"\b12\s?-?\s?h(our)?\b|\bam\s?/\s?pm\b|\bam or pm\b", msg):
            return "12h"
        return "24h"

    def _date_format(self, msg: str) -> str:
        if re.search(r"\b(us|american)\b", msg):
            return "us"
        if re.search(r"\b(eu|european|uk)\b", msg):
            return "eu"
        if re.search(r"\b(relative|full|long)\b", msg):
            return "relative"
        return "iso"

    def _extract_directory(self, text: str) -> str:
        match = re.search(r"\b(?:in|of|under)\s+(?:the\s+)?" + _PATH, text, re.IGNORECASE)
        if not match:
            return "."
        return self._directory_path(match.group(1))

    def _directory_path(self, token: str) -> str:
        token = token.strip().rstrip("?.!,")
        if token.lower() in ("", ".", "/", "root", "here", "project"):
            return "."
        # Directory keys carry a trailing slash
        return token if token.endswith("/") else f"{token}/"

    def _resolve_file(self, token: str) -> str:
        token = token.strip().rstrip("?!,")
        if token.lower() in ("file", "it", "this", "that", ""):
            return self.DEFAULT_READ_PATH
        return PATH_ALIASES.get(token.lower(), token)
