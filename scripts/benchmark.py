"""Micro-benchmarks for the copybook parser on generated copybooks."""

from __future__ import annotations

import time

from cblayout.copybook.parser import parse_copybook


def generate_copybook(groups: int = 200, items_per_group: int = 10) -> str:
    lines = ["       01  BENCH-REC."]
    for g in range(groups):
        occurs = " OCCURS 3" if g % 5 == 0 else ""
        lines.append(f"           05  GRP-{g:04d}{occurs}.")
        for i in range(items_per_group):
            if i % 3 == 0:
                lines.append(f"               10  NUM-{g:04d}-{i:02d}  PIC S9(7)V99 COMP-3.")
            elif i % 3 == 1:
                lines.append(f"               10  TXT-{g:04d}-{i:02d}  PIC X({i + 1}).")
                lines.append(f"                   88  TXT-{g:04d}-{i:02d}-Y  VALUE 'Y'.")
            else:
                lines.append(f"               10  BIN-{g:04d}-{i:02d}  PIC 9(8) COMP.")
    return "\n".join(lines)


def benchmark_parse(groups: int = 200, runs: int = 3) -> dict[str, float]:
    text = generate_copybook(groups=groups)
    best = None
    for _ in range(runs):
        start = time.perf_counter()
        result = parse_copybook(text, source_name="bench.cpy")
        elapsed = time.perf_counter() - start
        best = elapsed if best is None or elapsed < best else best
    lines = text.count("\n") + 1
    return {
        "lines": lines,
        "record_length": result.total_length,
        "best_seconds": best or 0.0,
        "lines_per_second": lines / best if best else 0.0,
    }


if __name__ == "__main__":
    result = benchmark_parse()
    print(result)
