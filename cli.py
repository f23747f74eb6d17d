import sys
import traceback

from assembler import assemble, listing
from bytecode import format_value
from compiler import compile_source
from errors import LadyGreyError
from vm import HEAP_SIZE, VM


USAGE = """Usage:
  ladygrey build "<expr>"
  ladygrey eval "<expr>"
  ladygrey run <file.lga>
  ladygrey repl
  options:
    --heap N    heap capacity in slots (default {heap})
    --trace     print machine state after every instruction (stderr)
    --reclaim   reuse operand slots when compiling expressions
    --debug     show Python traceback""".format(heap=HEAP_SIZE)


def usage_exit():
    print(USAGE)
    sys.exit(1)


def parse_options(argv):
    opts = {"heap": HEAP_SIZE, "trace": False, "reclaim": False, "debug": False}
    rest = []
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "--trace":
            opts["trace"] = True
        elif arg == "--reclaim":
            opts["reclaim"] = True
        elif arg == "--debug":
            opts["debug"] = True
        elif arg == "--heap":
            if i + 1 >= len(argv):
                print("--heap expects a number")
                sys.exit(1)
            try:
                opts["heap"] = int(argv[i + 1])
            except ValueError:
                print(f"--heap expects a number, got {argv[i + 1]}")
                sys.exit(1)
            if opts["heap"] <= 0:
                print("--heap must be positive")
                sys.exit(1)
            i += 1
        else:
            rest.append(arg)
        i += 1
    return opts, rest


def report(e, debug):
    if debug:
        traceback.print_exc()
    else:
        print(str(e))


def evaluate(source, opts):
    bc = compile_source(source, reclaim=opts["reclaim"])
    vm = VM(bc, heap_size=opts["heap"], trace=opts["trace"])
    vm.run()
    return vm.result(0)


def cmd_build(source, opts):
    try:
        bc = compile_source(source, reclaim=opts["reclaim"])
    except LadyGreyError as e:
        report(e, opts["debug"])
        sys.exit(1)

    print("INSTRUCTIONS:")
    for line in listing(bc):
        print(f"  {line}")


def cmd_eval(source, opts):
    try:
        result = evaluate(source, opts)
    except LadyGreyError as e:
        report(e, opts["debug"])
        sys.exit(1)
    print(format_value(result))


def cmd_run(path, opts):
    try:
        with open(path, "r", encoding="utf-8") as f:
            code = f.read()
    except OSError as e:
        print(f"Cannot read {path}: {e}")
        sys.exit(1)

    try:
        bc = assemble(code)
        vm = VM(bc, heap_size=opts["heap"], trace=opts["trace"])
        vm.run()
    except LadyGreyError as e:
        report(e, opts["debug"])
        sys.exit(1)

    for i, value in enumerate(vm.heap):
        print(f"[{i}] {format_value(value)}")


def cmd_repl(opts):
    print("LadyGrey REPL. Type :q to quit.")
    while True:
        try:
            line = input("ladygrey> ")
        except (EOFError, KeyboardInterrupt):
            print()
            break

        stripped = line.strip()
        if stripped in (":q", ":quit", "quit", "exit"):
            break
        if not stripped:
            continue

        # every line runs on a fresh machine
        try:
            print(format_value(evaluate(stripped, opts)))
        except LadyGreyError as e:
            report(e, opts["debug"])


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]
    opts, args = parse_options(argv)

    if not args:
        usage_exit()

    cmd = args[0]

    if cmd == "repl":
        if len(args) != 1:
            usage_exit()
        cmd_repl(opts)
        return

    if len(args) != 2:
        usage_exit()

    if cmd == "build":
        cmd_build(args[1], opts)
    elif cmd == "eval":
        cmd_eval(args[1], opts)
    elif cmd == "run":
        cmd_run(args[1], opts)
    else:
        print(f"Unknown command: {cmd}")
        sys.exit(1)


if __name__ == "__main__":
    main()
