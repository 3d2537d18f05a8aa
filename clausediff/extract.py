"""
Text extraction from PDF / DOCX / TXT files.

PDF text comes from PyMuPDF, DOCX from python-docx (paragraphs, then table rows).
Scanned PDFs, empty files and unsupported formats raise ExtractionError.
"""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Tuple
from zipfile import BadZipFile

import docx
import fitz  # PyMuPDF
from docx.opc.exceptions import PackageNotFoundError

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt")


class ExtractionError(RuntimeError):
    """Raised when no usable text can be read from a document."""


def clean_pdf_text(text: str) -> str:
    """Remove common PDF extraction artifacts while keeping paragraph breaks."""
    if not text:
        return ""
    text = text.replace("\0", "").replace("\f", "\n")
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [re.sub(r"[ \t]+", " ", ln).strip() for ln in text.split("\n")]
    text = "\n".join(lines)
    # hard wraps inside a sentence
    text = re.sub(r"([a-z,])\n([a-z])", r"\1 \2", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def extract_text_from_pdf(path: Path) -> str:
    try:
        with fitz.open(path) as doc:
            pages = [page.get_text("text") for page in doc]
    except (RuntimeError, ValueError, OSError) as e:
        raise ExtractionError(f"PDF text extraction failed for {path.name}: {e}") from e

    text = clean_pdf_text("\n\n".join(pages))
    if not text:
        raise ExtractionError(
            f"{path.name} appears to be scanned or image-based; OCR is required to extract its text."
        )
    return text


def extract_text_from_docx(path: Path) -> str:
    try:
        document = docx.Document(str(path))
    except (PackageNotFoundError, BadZipFile, KeyError, OSError) as e:
        raise ExtractionError(f"DOCX text extraction failed for {path.name}: {e}") from e

    parts = [p.text for p in document.paragraphs if p.text.strip()]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append(" | ".join(cells))

    if not parts:
        raise ExtractionError(f"No text found in DOCX document {path.name}")
    return "\n\n".join(parts)


def extract_text_from_txt(path: Path) -> str:
    try:
        text = path.read_text(encoding="utf-8")
    except (UnicodeDecodeError, OSError) as e:
        raise ExtractionError(f"Text file reading failed for {path.name}: {e}") from e

    if not text.strip():
        raise ExtractionError(f"Text file {path.name} is empty")
    return text


def extract_text(path: str | Path, *, verbose: bool = False) -> str:
    """Extract raw text from a supported document."""
    path = Path(path)
    if not path.is_file():
        raise ExtractionError(f"File not found: {path}")

    ext = path.suffix.lower()
    if ext == ".pdf":
        text = extract_text_from_pdf(path)
    elif ext == ".docx":
        text = extract_text_from_docx(path)
    elif ext == ".txt":
        text = extract_text_from_txt(path)
    elif ext == ".doc":
        raise ExtractionError(".doc files are not supported; convert the document to .docx")
    else:
        raise ExtractionError(
            f"Unsupported file type '{ext}'. Allowed types: {', '.join(SUPPORTED_EXTENSIONS)}"
        )

    if verbose:
        print(f"[INFO] Extracted {len(text)} chars from {path.name}")
    return text


def extract_pair(path_a: str | Path, path_b: str | Path, *, verbose: bool = False) -> Tuple[str, str]:
    """Extract both documents concurrently. Fails if either extraction fails."""
    with ThreadPoolExecutor(max_workers=2) as ex:
        fut_a = ex.submit(extract_text, path_a, verbose=verbose)
        fut_b = ex.submit(extract_text, path_b, verbose=verbose)
        return fut_a.result(), fut_b.result()
