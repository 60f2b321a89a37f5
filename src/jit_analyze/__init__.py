"""JIT compiler log analyzer.

Turns a stream of compiler events (task queue transitions, compilations,
installed nmethods, make-not-entrant records and uncommon traps) into
compile queue, recompilation, eliminated lock and code cache reports.
"""

__version__ = "1.0.0"
