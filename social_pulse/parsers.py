import io
import json
from typing import List, Dict, Any, Optional

import pandas as pd

from .config import Settings, load_settings
from .errors import InvalidFormatError

SUPPORTED_EXTENSIONS = ("csv", "json")


def file_extension(filename: str) -> str:
    return filename.lower().rsplit(".", 1)[-1] if "." in filename else ""


def _decode(content: bytes) -> str:
    try:
        # utf-8-sig drops the BOM spreadsheet tools like to prepend
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise InvalidFormatError("File is not valid UTF-8 text", details={"error": str(e)})


def parse_csv(text: str) -> List[Dict[str, Any]]:
    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False,
        )
    except pd.errors.EmptyDataError:
        raise InvalidFormatError("CSV file is empty")
    except pd.errors.ParserError as e:
        raise InvalidFormatError("Invalid CSV format", details={"error": str(e)})

    # Rows whose cells are all empty carry no post
    rows = df.to_dict("records")
    return [row for row in rows if any(str(v).strip() for v in row.values())]


def parse_json(text: str) -> List[Dict[str, Any]]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidFormatError("Invalid JSON format", details={"error": str(e)})
    rows = data if isinstance(data, list) else [data]
    return validate_rows(rows)


def validate_rows(rows: Any) -> List[Dict[str, Any]]:
    """Every row must be a key/value object; anything else rejects the whole batch."""
    if not isinstance(rows, list):
        raise InvalidFormatError("Expected a list of rows")
    for i, row in enumerate(rows):
        if not isinstance(row, dict):
            raise InvalidFormatError(
                f"Row {i} is not an object", details={"row": i, "type": type(row).__name__}
            )
    return rows


def parse_upload(
    filename: str, content: bytes, settings: Optional[Settings] = None
) -> List[Dict[str, Any]]:
    settings = settings or load_settings()
    if len(content) > settings.maxUploadBytes:
        raise InvalidFormatError(
            "File too large",
            details={"size": len(content), "limit": settings.maxUploadBytes},
        )

    ext = file_extension(filename)
    if ext not in SUPPORTED_EXTENSIONS:
        raise InvalidFormatError(
            "Unsupported file format. Please upload CSV or JSON.",
            details={"filename": filename},
        )

    text = _decode(content)
    if ext == "csv":
        return parse_csv(text)
    return parse_json(text)
