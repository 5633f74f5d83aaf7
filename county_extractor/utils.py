import os
import re
import sys
import json
import time
import logging
import datetime

from bs4 import Comment, NavigableString, Tag

from .errors import InputError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(logs_dir, console_level="WARNING"):
    """Log everything at INFO to a per-run file, only important messages to the console"""
    os.makedirs(logs_dir, exist_ok=True)
    log_file_path = os.path.join(logs_dir, f"extraction_{int(time.time())}.log")

    file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, str(console_level).upper(), logging.WARNING))
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    logging.basicConfig(level=logging.INFO, handlers=[file_handler, console_handler], force=True)
    return log_file_path


def print_status(message):
    """Print status messages to terminal and log them"""
    print(f"STATUS: {message}")
    logger.info(f"STATUS: {message}")


def is_empty_value(value):
    """Check if a value is empty, None, or whitespace"""
    if value is None:
        return True
    if isinstance(value, str):
        return len(value.strip()) == 0
    return False


def normalize_spaces(value):
    return re.sub(r"\s+", " ", value or "").strip()


def ensure_directory(path):
    os.makedirs(path, exist_ok=True)


def load_json(path, required=False):
    """Load a JSON file; missing optional files yield None"""
    if not os.path.exists(path):
        if required:
            raise InputError(f"Required input file not found: {path}", path=path)
        logger.info(f"Optional input not found: {path}")
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise InputError(f"Could not parse {path} as JSON: {e}", path=path) from e


def write_json(path, data):
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def read_text(path):
    if not os.path.exists(path):
        raise InputError(f"Required input file not found: {path}", path=path)
    with open(path, "r", encoding="utf-8", errors="ignore") as f:
        return f.read()


DATE_PATTERNS = [
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%y",
    "%B %d, %Y",
    "%b %d, %Y",
]


def parse_date_to_iso(date_string):
    """Convert the date formats seen on appraiser pages to YYYY-MM-DD"""
    if is_empty_value(date_string):
        return None
    date_string = date_string.strip()

    for pattern in DATE_PATTERNS:
        try:
            return datetime.datetime.strptime(date_string, pattern).strftime("%Y-%m-%d")
        except ValueError:
            continue

    match = re.search(r"(\d{1,2})/(\d{1,2})/(\d{4})", date_string)
    if match:
        month, day, year = match.groups()
        try:
            return datetime.date(int(year), int(month), int(day)).isoformat()
        except ValueError:
            return None
    return None


def parse_currency(value):
    """Parse "$1,234.50" style text; blank or malformed text yields None"""
    if is_empty_value(value):
        return None
    cleaned = re.sub(r"[$,\s]", "", str(value))
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def parse_int(value):
    """Parse string to int, extracting only digits"""
    if is_empty_value(value):
        return None
    digits_only = re.sub(r"[^0-9]", "", str(value))
    return int(digits_only) if digits_only else None


def text_with_breaks(element):
    """Visible text of an element with <br> rendered as newlines"""
    parts = []
    for node in element.children:
        if isinstance(node, Comment):
            continue
        if isinstance(node, NavigableString):
            parts.append(str(node))
        elif isinstance(node, Tag):
            if node.name == "br":
                parts.append("\n")
            else:
                parts.append(text_with_breaks(node))
    return "".join(parts)


def split_lines(text):
    return [line for line in (normalize_spaces(l) for l in (text or "").split("\n")) if line]


def parse_dimensions(text):
    """Parse "12 x 20" style dimensions into (width, length, area)"""
    match = re.search(r"(\d+(?:\.\d+)?)\s*[xX]\s*(\d+(?:\.\d+)?)", normalize_spaces(text))
    if not match:
        return None, None, None
    width, length = float(match.group(1)), float(match.group(2))
    area = width * length if width > 0 and length > 0 else None
    return width, length, area


def _inside_skipped(node, element, skip_tags):
    for parent in node.parents:
        if parent is element:
            return False
        if parent.name in skip_tags:
            return True
    return False


def visible_text(element, skip_tags=("a",)):
    """Text of an element without comments or the text of `skip_tags` descendants"""
    parts = []
    for node in element.find_all(string=True):
        if isinstance(node, Comment) or _inside_skipped(node, element, skip_tags):
            continue
        parts.append(str(node))
    return normalize_spaces(" ".join(parts))
