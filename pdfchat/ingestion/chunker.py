"""Fixed-size sliding-window text chunker."""


def chunk_text(text: str, chunk_size: int = 800, chunk_overlap: int = 150) -> list[str]:
    """Split text into trimmed windows of chunk_size characters.

    Empty (post-trim) windows are dropped. The next window starts at
    max(end - overlap, end): the scan never moves back past the previous
    window's end, so any overlap value terminates.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")
    if not 0 <= chunk_overlap < chunk_size:
        raise ValueError("chunk_overlap must satisfy 0 <= overlap < chunk_size")

    chunks = []
    if not text:
        return chunks

    start = 0
    while start < len(text):
        end = min(len(text), start + chunk_size)
        window = text[start:end].strip()
        if window:
            chunks.append(window)
        if end == len(text):
            break
        start = max(end - chunk_overlap, end)

    return chunks
