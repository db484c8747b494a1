import re
from typing import Any, Callable, TYPE_CHECKING

if TYPE_CHECKING:
    from loguru import Record

JENKINS_SECRET_PATTERNS = {
    "API token": r"\b11[0-9a-f]{32}\b",
    "Basic authorization header": r"[Bb]asic [A-Za-z0-9+/]{8,}={0,2}",
    "Crumb header": r"Jenkins-Crumb[\"']?\s*[:=]\s*[\"']?[0-9a-f]{32,64}",
    "Credentials in URL": r"https?:\/\/[^\/\s:@]+:[^\/\s:@]+@",
    "Private key block": r"-----BEGIN [A-Z ]*PRIVATE KEY( BLOCK)?-----",
}


class SensitiveLogFilter:
    compiled_patterns = [
        re.compile(pattern) for pattern in JENKINS_SECRET_PATTERNS.values()
    ]

    def hide_sensitive_strings(self, *tokens: str) -> None:
        self.compiled_patterns.extend(
            [re.compile(re.escape(token.strip())) for token in tokens if token.strip()]
        )

    def mask_string(self, string: str, full_hide: bool = False) -> str:
        masked_string = string
        for pattern in self.compiled_patterns:
            replace: Callable[[re.Match[str]], str] | str = (
                "[REDACTED]"
                if full_hide
                else lambda match: match.group()[:6] + "[REDACTED]"
            )
            masked_string = pattern.sub(replace, masked_string)
        return masked_string

    def mask_object(self, obj: Any, full_hide: bool = False) -> Any:
        if isinstance(obj, str):
            return self.mask_string(obj, full_hide)
        if isinstance(obj, list):
            return [self.mask_object(o, full_hide) for o in obj]
        if isinstance(obj, dict):
            return {k: self.mask_object(v, full_hide) for k, v in obj.items()}

        return obj

    def create_filter(self, full_hide: bool = False) -> Callable[["Record"], bool]:
        def _filter(record: "Record") -> bool:
            record["message"] = self.mask_string(record["message"], full_hide)
            return True

        return _filter


sensitive_log_filter = SensitiveLogFilter()
