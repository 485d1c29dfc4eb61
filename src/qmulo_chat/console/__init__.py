"""
Console subpackage: input classification, session loop, REPL and rendering.
"""
