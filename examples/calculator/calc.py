"""Tiny line calculator used by calculator.marco.md."""
import sys

for line in sys.stdin:
    line = line.strip()
    if not line:
        continue
    left, op, right = line.split()
    a, b = int(left), int(right)
    if op == "+":
        print(a + b)
    elif op == "-":
        print(a - b)
    elif op == "*":
        print(a * b)
    elif op == "/":
        if b == 0:
            print("error: division by zero", file=sys.stderr)
            sys.exit(1)
        print(a // b)
    else:
        print(f"error: unknown operator {op!r}", file=sys.stderr)
        sys.exit(2)
