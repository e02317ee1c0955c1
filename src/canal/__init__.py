"""
Canal - A dataflow engine for node-based image processing.

Nodes carry an effect (load, text, blur, color correct, transform,
merge, composition, export); edges feed one node's output into another.
The engine re-evaluates a node whenever its effect, its connections or
its inputs change and propagates the result downstream.
"""

__version__ = "0.1.0"
