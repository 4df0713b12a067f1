"""Input validation — registration and review submission rules.

Each validator returns a list of `Violation`s. An empty list means the input
is acceptable; callers turn a non-empty list into a `ValidationError`.
"""

import re
from typing import List, Optional

from pydantic import BaseModel

# Dot-separated labels without nested repetition, so matching stays linear
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s.]+(\.[^@\s.]+)*\.[A-Za-z]{2,3}$")
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
URL_PATTERN = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)

USERNAME_MIN, USERNAME_MAX = 3, 30
PASSWORD_MIN, PASSWORD_MAX = 6, 72
# bcrypt ignores everything past 72 bytes
PASSWORD_MAX_BYTES = 72
EMAIL_MAX = 254
PROFILE_NAME_MAX = 50
PROFILE_BIO_MAX = 200

CODE_MIN_CHARS = 10
CODE_MAX_BYTES = 1024 * 1024  # 1MB
CODE_MAX_LINES = 10000
PRIORITY_MIN, PRIORITY_MAX = 1, 10

EXTENSION_LANGUAGES = {
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "java": "java",
    "cs": "csharp",
    "cpp": "cpp",
    "cxx": "cpp",
    "c": "c",
    "go": "go",
    "rs": "rust",
    "php": "php",
    "rb": "ruby",
    "kt": "kotlin",
    "swift": "swift",
    "dart": "dart",
    "html": "html",
    "htm": "html",
    "css": "css",
    "scss": "css",
    "sass": "css",
    "sql": "sql",
    "sh": "shell",
    "bash": "shell",
    "yml": "yaml",
    "yaml": "yaml",
    "json": "json",
    "xml": "xml",
    "txt": "other",
}

SUPPORTED_LANGUAGES = frozenset(EXTENSION_LANGUAGES.values())

LANGUAGE_TIME_MULTIPLIERS = {
    "cpp": 1.5,
    "java": 1.3,
    "csharp": 1.3,
    "python": 1.2,
    "typescript": 1.1,
    "javascript": 1.0,
    "go": 1.1,
    "rust": 1.4,
    "other": 0.8,
}

SUSPICIOUS_PATTERNS = [
    re.compile(r"system\s*\(", re.IGNORECASE),
    re.compile(r"exec\s*\(", re.IGNORECASE),
    re.compile(r"eval\s*\(", re.IGNORECASE),
    re.compile(r"shell_exec", re.IGNORECASE),
    re.compile(r"file_get_contents", re.IGNORECASE),
    re.compile(r"__import__", re.IGNORECASE),
]
# Control characters other than tab, newline, vertical tab, form feed, carriage return
BINARY_PATTERN = re.compile(r"[\x00-\x08\x0E-\x1F\x7F]")

SUSPICIOUS_WARNING = (
    "Code contains potentially dangerous functions. "
    "Review will proceed with additional security checks."
)
REPETITION_WARNING = "Code appears to have excessive repetition. This might affect analysis quality."
BINARY_ERROR = "Binary content detected. Please submit text-based code only."


class Violation(BaseModel):
    field: str
    message: str


class ContentCheck(BaseModel):
    errors: List[str] = []
    warnings: List[str] = []

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _extension(filename: str) -> str:
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


def detect_language_from_filename(filename: str) -> str:
    """Map a filename's extension to a language name, "other" when unknown."""
    return EXTENSION_LANGUAGES.get(_extension(filename), "other")


def resolve_language(language: Optional[str], filename: Optional[str]) -> Optional[str]:
    """Explicit language wins; otherwise derive it from a known filename extension."""
    if language:
        return language.lower()
    if filename and _extension(filename) in EXTENSION_LANGUAGES:
        return detect_language_from_filename(filename)
    return None


def estimate_processing_time(code: str, language: Optional[str]) -> int:
    """Rough review duration in milliseconds."""
    lines = len(code.split("\n"))
    base_time = 2000
    base_time += (lines // 10) * 100
    base_time += (len(code) // 1000) * 50
    multiplier = LANGUAGE_TIME_MULTIPLIERS.get(language or "", 1.0)
    return int(base_time * multiplier)


def validate_registration(
    username: Optional[str],
    email: Optional[str],
    password: Optional[str],
    profile: Optional[dict] = None,
) -> List[Violation]:
    violations: List[Violation] = []

    if not username:
        violations.append(Violation(field="username", message="Username is required"))
    elif not USERNAME_MIN <= len(username) <= USERNAME_MAX:
        violations.append(Violation(
            field="username",
            message=f"Username must be between {USERNAME_MIN} and {USERNAME_MAX} characters",
        ))
    elif not USERNAME_PATTERN.match(username):
        violations.append(Violation(
            field="username",
            message="Username can only contain letters, numbers, underscores and hyphens",
        ))

    if not email:
        violations.append(Violation(field="email", message="Email is required"))
    elif len(email) > EMAIL_MAX or not EMAIL_PATTERN.match(email.strip()):
        violations.append(Violation(field="email", message="Please provide a valid email address"))

    violations.extend(validate_password(password))
    violations.extend(validate_profile(profile or {}))
    return violations


def validate_password(password: Optional[str], field: str = "password") -> List[Violation]:
    if not password:
        return [Violation(field=field, message="Password is required")]
    if not PASSWORD_MIN <= len(password) <= PASSWORD_MAX:
        return [Violation(
            field=field,
            message=f"Password must be between {PASSWORD_MIN} and {PASSWORD_MAX} characters",
        )]
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        return [Violation(field=field, message=f"Password cannot exceed {PASSWORD_MAX_BYTES} bytes")]
    return []


def validate_profile(profile: dict) -> List[Violation]:
    violations: List[Violation] = []
    name = profile.get("name")
    if name is not None and len(name) > PROFILE_NAME_MAX:
        violations.append(Violation(
            field="profile.name", message=f"Name cannot exceed {PROFILE_NAME_MAX} characters",
        ))
    bio = profile.get("bio")
    if bio is not None and len(bio) > PROFILE_BIO_MAX:
        violations.append(Violation(
            field="profile.bio", message=f"Bio cannot exceed {PROFILE_BIO_MAX} characters",
        ))
    avatar = profile.get("avatar")
    if avatar and not URL_PATTERN.match(avatar):
        violations.append(Violation(field="profile.avatar", message="Avatar must be a valid URL"))
    return violations


def validate_review_submission(
    code: Optional[str],
    language: Optional[str] = None,
    filename: Optional[str] = None,
    priority: Optional[int] = None,
) -> List[Violation]:
    violations: List[Violation] = []

    if not code or not code.strip():
        violations.append(Violation(field="code", message="Code is required"))
    else:
        if len(code) < CODE_MIN_CHARS:
            violations.append(Violation(
                field="code", message=f"Code must be at least {CODE_MIN_CHARS} characters",
            ))
        if len(code.encode("utf-8")) > CODE_MAX_BYTES:
            violations.append(Violation(
                field="code", message=f"Code must not exceed {CODE_MAX_BYTES} bytes",
            ))
        if len(code.split("\n")) > CODE_MAX_LINES:
            violations.append(Violation(
                field="code", message=f"Code must not exceed {CODE_MAX_LINES} lines",
            ))

    if filename is not None and _extension(filename) not in EXTENSION_LANGUAGES:
        violations.append(Violation(field="filename", message="Invalid filename or extension"))

    if language and language.lower() not in SUPPORTED_LANGUAGES:
        violations.append(Violation(field="language", message=f"Unsupported language: {language}"))
    elif resolve_language(language, filename) is None:
        violations.append(Violation(
            field="language", message="Language is required when no filename is given",
        ))

    if priority is not None and not PRIORITY_MIN <= priority <= PRIORITY_MAX:
        violations.append(Violation(
            field="priority", message=f"Priority must be between {PRIORITY_MIN} and {PRIORITY_MAX}",
        ))

    return violations


def check_code_content(code: str) -> ContentCheck:
    """Heuristic checks on the code body: binary data is rejected, the rest only warns."""
    check = ContentCheck()

    if any(pattern.search(code) for pattern in SUSPICIOUS_PATTERNS):
        check.warnings.append(SUSPICIOUS_WARNING)

    if BINARY_PATTERN.search(code):
        check.errors.append(BINARY_ERROR)

    lines = code.split("\n")
    unique_lines = {line.strip() for line in lines}
    if len(lines) > 50 and len(unique_lines) < len(lines) * 0.3:
        check.warnings.append(REPETITION_WARNING)

    return check
