from .core_utils import eprint
