import sys


def main() -> None:
    """Print a sum and echo any forwarded arguments."""

    print(1 + 1)
    if len(sys.argv) > 1:
        print(" ".join(sys.argv[1:]))


if __name__ == "__main__":
    main()
