"""Minimal PDF 1.4 writer shared by the print exporters."""

from __future__ import annotations

from typing import Any, Callable, Sequence

POINTS_PER_MM = 72.0 / 25.4

PdfPoint = tuple[float, float]


def escape_pdf_text(value: str) -> str:
    return value.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def path_operations(
    paths: Sequence[Sequence[Sequence[Any]]],
    to_pdf: Callable[[PdfPoint], PdfPoint],
) -> list[str]:
    """Stroke operators for serialized ``M``/``L``/``C``/``Z`` command lists."""

    ops: list[str] = []
    for path in paths:
        if not path:
            continue
        for command in path:
            tag = command[0]
            if tag == "M":
                x, y = to_pdf((command[1], command[2]))
                ops.append(f"{x:.2f} {y:.2f} m")
            elif tag == "L":
                x, y = to_pdf((command[1], command[2]))
                ops.append(f"{x:.2f} {y:.2f} l")
            elif tag == "C":
                c1 = to_pdf((command[1], command[2]))
                c2 = to_pdf((command[3], command[4]))
                end = to_pdf((command[5], command[6]))
                ops.append(f"{c1[0]:.2f} {c1[1]:.2f} {c2[0]:.2f} {c2[1]:.2f} {end[0]:.2f} {end[1]:.2f} c")
            elif tag == "Z":
                ops.append("h")
        ops.append("S")
    return ops


def write_pdf(pages: Sequence[tuple[float, float, Sequence[str]]]) -> bytes:
    """Serialize ``(width_pt, height_pt, operators)`` pages into a PDF file."""

    page_count = len(pages)
    # 1 catalog, 2 pages, 3 font, then a page/contents pair per sheet.
    page_ids = [4 + 2 * index for index in range(page_count)]
    kids = " ".join(f"{page_id} 0 R" for page_id in page_ids)

    objects: list[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {page_count} >>".encode("utf-8"),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for (width, height, operations), page_id in zip(pages, page_ids):
        content_stream = "\n".join(operations).encode("utf-8")
        objects.append(
            f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 {width:.2f} {height:.2f}] "
            f"/Resources << /Font << /F1 3 0 R >> >> /Contents {page_id + 1} 0 R >>".encode("utf-8")
        )
        objects.append(
            f"<< /Length {len(content_stream)} >>\nstream\n".encode("utf-8")
            + content_stream
            + b"\nendstream"
        )

    buffer = bytearray()
    buffer.extend(b"%PDF-1.4\n")
    offsets = [0]
    for idx, obj in enumerate(objects, start=1):
        offsets.append(len(buffer))
        buffer.extend(f"{idx} 0 obj\n".encode("utf-8"))
        buffer.extend(obj)
        if not obj.endswith(b"\n"):
            buffer.extend(b"\n")
        buffer.extend(b"endobj\n")
    xref_offset = len(buffer)
    count = len(objects) + 1
    buffer.extend(f"xref\n0 {count}\n".encode("utf-8"))
    buffer.extend(b"0000000000 65535 f \n")
    for offset in offsets[1:]:
        buffer.extend(f"{offset:010d} 00000 n \n".encode("utf-8"))
    buffer.extend(
        f"trailer\n<< /Size {count} /Root 1 0 R >>\nstartxref\n{xref_offset}\n%%EOF".encode("utf-8")
    )
    return bytes(buffer)


__all__ = ["POINTS_PER_MM", "escape_pdf_text", "path_operations", "write_pdf"]
