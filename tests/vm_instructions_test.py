from bytecode import INT_MAX, NULL, Bool, Integer
from errors import ArithmeticFault, CompileError, HeapOutOfBounds, StackUnderflow
from vm import VM


def run(instructions, heap_size=5):
    vm = VM(instructions, heap_size=heap_size)
    vm.run()
    return vm


def expect_fault(vm, fault_type):
    try:
        vm.run()
    except fault_type as e:
        return e
    raise AssertionError(f"Expected {fault_type.__name__}, run completed.\nstate={vm.snapshot()}")


def check(actual, expected, what):
    if actual != expected:
        raise AssertionError(f"{what}: expected {expected!r}, got {actual!r}")


def test_heap_starts_null():
    vm = VM([], heap_size=3)
    check(vm.heap.snapshot(), [NULL, NULL, NULL], "heap")
    check((vm.pc, vm.ar, vm.stack), (0, 0, []), "registers")


def test_store_writes_at_ar_and_pushes_address():
    vm = run([("STORE", Integer(4)), ("STORE", Bool(True))])
    check(vm.heap.snapshot()[:3], [Integer(4), Bool(True), NULL], "heap")
    check(vm.stack, [0, 1], "stack")
    check(vm.ar, 2, "ar")


def test_copy_duplicates_by_value():
    vm = run([("STORE", Integer(4)), ("COPY", None)])
    check(vm.heap.snapshot()[:2], [Integer(4), Integer(4)], "heap")
    check(vm.stack, [1], "stack")
    check(vm.ar, 2, "ar")


def test_move_clears_source_slot():
    vm = run([("STORE", Integer(4)), ("MOVE", None)])
    check(vm.heap.snapshot()[:2], [NULL, Integer(4)], "heap")
    check(vm.stack, [1], "stack")
    check(vm.ar, 2, "ar")


def test_ar_sets_allocation_cursor():
    vm = run([("PUSH", 3), ("AR", None), ("STORE", Integer(9))])
    check(vm.result(3), Integer(9), "heap[3]")
    check(vm.stack, [3], "stack")
    check(vm.ar, 4, "ar")


def test_push_literal_address():
    vm = run([("PUSH", 7)])
    check(vm.stack, [7], "stack")
    check(vm.heap.snapshot(), [NULL] * 5, "heap")


def test_dup_on_empty_stack_underflows():
    e = expect_fault(VM([("DUP", None)]), StackUnderflow)
    check(e.ip, 0, "fault ip")
    check(e.snapshot["stack"], [], "fault stack")


def test_fault_while_stepping_carries_state():
    vm = VM([("DUP", None)])
    try:
        vm.step()
    except StackUnderflow as e:
        check(e.ip, 0, "fault ip")
        check(e.instruction, ("DUP", None), "fault instruction")
        if e.snapshot is None:
            raise AssertionError("fault is missing its machine snapshot")
        check(e.snapshot["pc"], 0, "snapshot pc")
        if "ip=0000" not in str(e):
            raise AssertionError(f"fault report missing ip:\n{e}")
        return
    raise AssertionError("Expected StackUnderflow")


def test_dup_pushes_address_twice():
    vm = run([("PUSH", 2), ("DUP", None)])
    check(vm.stack, [2, 2], "stack")


def test_swap_reverses_top_two():
    vm = run([("PUSH", 1), ("PUSH", 2), ("SWAP", None)])
    check(vm.stack, [2, 1], "stack")


def test_swap_needs_two_addresses():
    expect_fault(VM([("PUSH", 1), ("SWAP", None)]), StackUnderflow)


def test_arithmetic_writes_into_base_slot():
    cases = [
        ("ADD", 7, 2, 9),
        ("SUB", 7, 2, 5),
        ("MUL", 7, 2, 14),
        ("DIV", 7, 2, 3),
        ("DIV", -7, 2, -3),
        ("DIV", 7, -2, -3),
        ("DIV", -7, -2, 3),
    ]
    for opcode, left, right, expected in cases:
        vm = run([("STORE", Integer(left)), ("STORE", Integer(right)), (opcode, None)])
        check(vm.result(0), Integer(expected), f"{left} {opcode} {right}")
        check(vm.result(1), Integer(right), f"{opcode} operand slot")
        check(vm.stack, [0], f"{opcode} stack")


def test_arithmetic_type_mismatch_consumes_operands():
    vm = run([("PUSH", 4), ("STORE", NULL), ("STORE", Integer(1)), ("ADD", None)])
    check(vm.stack, [4], "stack")
    check(vm.heap.snapshot()[:2], [NULL, Integer(1)], "heap")


def test_skipped_instruction_shifts_later_operands():
    # ADD is skipped and pushes nothing, so SUB below underflows
    vm = VM([
        ("STORE", Bool(True)),
        ("STORE", Integer(1)),
        ("ADD", None),
        ("STORE", Integer(2)),
        ("SUB", None),
    ])
    e = expect_fault(vm, StackUnderflow)
    check(e.ip, 4, "fault ip")


def test_div_by_zero_faults_without_touching_dividend():
    vm = VM([("STORE", Integer(7)), ("STORE", Integer(0)), ("DIV", None), ("STORE", Integer(1))])
    e = expect_fault(vm, ArithmeticFault)
    check(e.ip, 2, "fault ip")
    check(vm.result(0), Integer(7), "dividend")
    check(vm.result(2), NULL, "instruction after fault")
    if "ip=0002" not in str(e):
        raise AssertionError(f"fault report missing ip:\n{e}")


def test_integer_overflow_faults():
    expect_fault(VM([("STORE", Integer(INT_MAX)), ("INC", None)]), ArithmeticFault)
    expect_fault(VM([("STORE", Integer(INT_MAX)), ("STORE", Integer(2)), ("MUL", None)]), ArithmeticFault)


def test_equal_on_integers():
    vm = run([("STORE", Integer(5)), ("STORE", Integer(5)), ("EQUAL", None)])
    check(vm.result(0), Bool(True), "equal")
    check(vm.stack, [0], "stack")

    vm = run([("STORE", Integer(5)), ("STORE", Integer(6)), ("EQUAL", None)])
    check(vm.result(0), Bool(False), "not equal")


def test_equal_type_mismatch_pushes_nothing():
    vm = run([("STORE", Integer(5)), ("STORE", Bool(True)), ("EQUAL", None)])
    check(vm.stack, [], "stack")
    check(vm.heap.snapshot()[:2], [Integer(5), Bool(True)], "heap")


def test_not_flips_bool():
    vm = run([("STORE", Bool(True)), ("NOT", None)])
    check(vm.result(0), Bool(False), "not")
    check(vm.stack, [0], "stack")


def test_unary_skip_still_pushes_address():
    for opcode, value in (("NOT", Integer(1)), ("INC", Bool(False)), ("DEC", NULL)):
        vm = run([("STORE", value), (opcode, None)])
        check(vm.result(0), value, f"{opcode} slot")
        check(vm.stack, [0], f"{opcode} stack")


def test_inc_dec():
    vm = run([("STORE", Integer(41)), ("INC", None)])
    check(vm.result(0), Integer(42), "inc")
    vm = run([("STORE", Integer(0)), ("DEC", None)])
    check(vm.result(0), Integer(-1), "dec")


def test_allocation_past_capacity_faults():
    vm = VM([("STORE", Integer(1)), ("STORE", Integer(2)), ("STORE", Integer(3))], heap_size=2)
    e = expect_fault(vm, HeapOutOfBounds)
    check(e.ip, 2, "fault ip")
    check(e.snapshot["ar"], 2, "fault ar")


def test_operand_address_out_of_range_faults():
    expect_fault(VM([("PUSH", 9), ("COPY", None)]), HeapOutOfBounds)
    expect_fault(VM([("PUSH", 5), ("INC", None)], heap_size=5), HeapOutOfBounds)


def test_invalid_instructions_rejected_before_run():
    bad = [
        [("HALT", None)],
        [("STORE", 5)],
        [("PUSH", -1)],
        [("PUSH", True)],
        [("ADD", 1)],
        [("STORE", Integer(2 ** 63))],
    ]
    for program in bad:
        try:
            VM(program)
        except CompileError:
            continue
        raise AssertionError(f"Expected CompileError for {program!r}")


def test_heap_capacity_must_be_positive():
    for size in (0, -1, "5"):
        try:
            VM([], heap_size=size)
        except ValueError:
            continue
        raise AssertionError(f"Expected ValueError for heap_size={size!r}")


if __name__ == "__main__":
    for name, fn in list(globals().items()):
        if name.startswith("test_"):
            fn()
    print("ok")
