"""Public package exports for the BBC Micro 6502 disassembler."""

from .analysis import BranchAnalysis, BranchAnalyzer, ProgramWindow
from .decoder import decode
from .dfs import CatalogEntry, DiskImage, DiskImageError
from .disassembler import AnalysisMismatchError, Disassembler, disassemble
from .fidelity import Step, StepKind, classify_step, straddles, will_assemble_identically
from .opcodes import AddressingMode, FlowKind, InstructionDescriptor, OPCODES, lookup
from .symbols import OS_CALLS, OS_VECTORS, Variable, parse_variable

__all__ = [
    "AddressingMode",
    "AnalysisMismatchError",
    "BranchAnalysis",
    "BranchAnalyzer",
    "CatalogEntry",
    "Disassembler",
    "DiskImage",
    "DiskImageError",
    "FlowKind",
    "InstructionDescriptor",
    "OPCODES",
    "OS_CALLS",
    "OS_VECTORS",
    "ProgramWindow",
    "Step",
    "StepKind",
    "Variable",
    "classify_step",
    "decode",
    "disassemble",
    "lookup",
    "parse_variable",
    "straddles",
    "will_assemble_identically",
]
