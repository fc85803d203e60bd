MEMORY_SIZE = 256           # One cell per value a byte register can address
RESERVED_MIN_MEM_ADDR = 0   # Accesses below this are segmentation faults
MAX_OVERLAY_DEPTH = 64      # Nested vrlx calls allowed

BYTE_MASK = 0xFF

REGISTER_NAMES = ['rax', 'rbx', 'rcx', 'rdx']
INDIRECT_PREFIX = '*'

LABEL_TABLE_END = '/// END COMPILER GENERATED LABEL TABLE ///'
