# CPU model: instruction set, register file + stack, word ALU.
