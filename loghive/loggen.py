import argparse
import datetime
import random
from typing import List, Optional


URLS = [
    "/index.html",
    "/products.html",
    "/about.html",
    "/contact.html",
    "/cart",
    "/checkout",
    "/login",
    "/api/items",
]

USER_AGENTS = [
    "Mozilla/5.0 Chrome/90.0",
    "Mozilla/5.0 Edge/88.0",
    "Mozilla/5.0 Opera/74.0",
    "Mozilla/5.0 Firefox/87.0",
    "Mozilla/5.0 Safari/14.0",
]

STATUSES = [200] * 14 + [301, 304, 404, 404, 500]


def generate_lines(
    target_lines: int,
    seed: Optional[int] = None,
    malformed_rate: float = 0.0,
    delimiter: str = ",",
) -> List[str]:
    """
    Synthetic web server log lines:
      192.168.1.3,2024-03-10 12:01:07,/index.html,500,Mozilla/5.0 Chrome/90.0

    A fixed seed gives the same lines every time.
    """
    rng = random.Random(seed)
    current_time = datetime.datetime(2024, 3, 10, 12, 0, 0)
    lines = []

    for _ in range(target_lines):
        # Simple jump in time
        current_time += datetime.timedelta(seconds=rng.randint(0, 20))
        ts = current_time.strftime("%Y-%m-%d %H:%M:%S")

        fields = [
            f"192.168.1.{rng.randint(1, 12)}",
            ts,
            rng.choice(URLS),
            str(rng.choice(STATUSES)),
            rng.choice(USER_AGENTS),
        ]

        if rng.random() < malformed_rate:
            if rng.random() < 0.5:
                fields.pop()
            else:
                fields[3] = "-"

        lines.append(delimiter.join(fields))

    return lines


def generate_logs(
    filename: str = "access_log.csv",
    target_lines: int = 1000,
    seed: Optional[int] = None,
    malformed_rate: float = 0.0,
    delimiter: str = ",",
) -> int:
    lines = generate_lines(target_lines, seed, malformed_rate, delimiter)

    with open(filename, "w", encoding="utf-8", newline="") as f:
        for line in lines:
            f.write(line + "\n")

    return len(lines)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic web server log file"
    )
    parser.add_argument("--output", default="access_log.csv")
    parser.add_argument("--lines", type=int, default=1000)
    parser.add_argument("--seed", type=int)
    parser.add_argument("--malformed-rate", type=float, default=0.0)
    parser.add_argument("--tab", action="store_true", help="Tab-separated output")
    args = parser.parse_args(argv)

    written = generate_logs(
        filename=args.output,
        target_lines=args.lines,
        seed=args.seed,
        malformed_rate=args.malformed_rate,
        delimiter="\t" if args.tab else ",",
    )

    print(f"Generated {written} lines in {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
