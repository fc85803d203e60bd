# Basic
LABEL = 'label'     # label NAME (no-op at runtime)
DMP = 'dmp'         # dump registers, memory [, VFS]
PANIC = 'panic'     # unconditional abort
FAULT = 'fault'     # raise fault
COMMENT = '//'      # skip to the matching //

# Memory
MEMSET = 'memset'   # U2 -> M[U1]
MOV = 'mov'         # SRC -> DEST

# Arithmetic
ADD = 'add'         # R1 + R2 -> R3
SUB = 'sub'         # R1 - R2 -> R3
MUL = 'mul'         # R1 * R2 -> R3
DIV = 'div'         # R1 // R2 -> R3
INV = 'inv'         # R1 > 0 ? 0 : 1 -> R1

# Control flow
GOTO = 'goto'       # goto LABEL | goto R1
CGT = 'cgt'         # if R1 .gt 0 goto LABEL

# Comparison
GRT = 'grt'         # R3 > R2 -> R1
LT = 'lt'           # R3 < R2 -> R1
EQ = 'eq'           # R2 == R3 -> R1

# Output
OUTSTR = 'outstr'   # R1 as UTF-8 character
OUTBYTE = 'outbyte'  # R1 as decimal

# VFS
VFSR = 'vfsr'       # F[U2] -> M[PTR...]
VRLX = 'vrlx'       # run F[U1] as overlay

# Operand tokens following each opcode
OPERAND_COUNTS = {
    LABEL: 1,
    DMP: 0,
    PANIC: 0,
    FAULT: 0,
    MEMSET: 2,
    MOV: 2,
    ADD: 3,
    SUB: 3,
    MUL: 3,
    DIV: 3,
    INV: 1,
    GOTO: 1,
    CGT: 2,
    GRT: 3,
    LT: 3,
    EQ: 3,
    OUTSTR: 1,
    OUTBYTE: 1,
    VFSR: 2,
    VRLX: 1
}
