from datetime import datetime

from logmergeview.rendering import RenderOptions, output_lines, render

GENERATED_AT = datetime(2023, 7, 14, 9, 0, 0)


def contains_list(full_list, sub_list) -> bool:
    sub_len = len(sub_list)
    for offset in range(len(full_list) - len(sub_list) + 1):
        if full_list[offset:offset + sub_len] == sub_list:
            return True
    return False


def log_text(*lines: str) -> str:
    return "\n".join(lines) + "\n"


def log_bytes(*lines: str) -> bytes:
    return log_text(*lines).encode("utf-8")


def rendered_lines(file_infos, merged, **render_options) -> tuple[list[str], dict]:
    text, line_map = render(file_infos, merged, RenderOptions(**render_options), generated_at=GENERATED_AT)
    return output_lines(text), dict(line_map)
