"""Writing the build result: output file and action outputs."""

import os
import uuid
from pathlib import Path
from typing import Optional


def write_output(path: str, content: str, base_dir: str = ".") -> str:
    """Write ``content`` to ``path``, replacing any existing file.

    Returns:
        The path written to
    """
    target = Path(path)
    if not target.is_absolute():
        target = Path(base_dir, path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding='utf-8')
    return str(target)


def set_output(name: str, value: str, output_file: Optional[str] = None) -> bool:
    """Append an output variable to the ``$GITHUB_OUTPUT`` file.

    Multi-line values use the heredoc syntax of the file.

    Returns:
        False when no output file is configured
    """
    output_file = output_file or os.getenv('GITHUB_OUTPUT')
    if not output_file:
        return False

    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    with open(output_file, 'a', encoding='utf-8') as f:
        f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
    return True
