"""
Path helpers shared by the resolver and the injector.

Output paths coming from the esbuild metafile are always stored and compared
in forward-slash form, regardless of the host OS.
"""

import os


def posix_join(*segments: str) -> str:
    """Join like the host platform would, then convert separators to '/'."""
    joined = os.path.normpath(os.path.join(*segments))
    if os.sep == "/":
        return joined
    return joined.replace(os.sep, "/")


def relative_path(start: str, target: str) -> str:
    """Return `target` relative to the directory `start`, in forward-slash form."""
    rel = os.path.relpath(target, start)
    if os.sep == "/":
        return rel
    return rel.replace(os.sep, "/")


def public_path_join(public_path: str, rel_path: str) -> str:
    """Join a public URL prefix with an output-relative path.

    Mirrors esbuild's own joinWithPublicPath so rewritten URLs agree with the
    asset URLs the bundler emits itself.
    """
    rel_path = os.path.normpath(rel_path)

    if not public_path:
        public_path = "."

    slash = "" if public_path.endswith("/") else "/"
    return f"{public_path}{slash}{rel_path}"
