"""Detect platform-specific native binary packages.

These are optional dependencies carrying a prebuilt binary for one
OS/architecture combination (``@oxlint/win32-x64``, ``esbuild-darwin-arm64``,
``@rollup/rollup-linux-x64-musl``). Only one of a group is ever installed.
The token tables follow the esbuild package list and the napi-rs build
triplet matrix.
"""

PLATFORMS = frozenset({
    "win32",
    "darwin",
    "linux",
    "android",
    "freebsd",
    "openbsd",
    "netbsd",
    "sunos",
    "aix",
})

ARCHITECTURES = frozenset({
    "x64",
    "arm64",
    "arm",
    "ia32",
    "ppc64",
    "ppc64le",
    "s390x",
    "riscv64",
    "mips64el",
    "loong64",
})

ABI_SUFFIXES = frozenset({"gnu", "musl", "msvc", "gnueabihf"})


def is_platform_specific_package(name: str) -> bool:
    """Return True if ``name`` looks like an OS/arch build of a native addon.

    A trailing token after the OS/arch pair that is not a known ABI, and is
    the last token of the name, makes the match inconclusive; that pair is
    skipped rather than accepted. This heuristic accepts a small rate of
    false positives and negatives.
    """
    unscoped = name.split("/", 1)[1] if name.startswith("@") and "/" in name else name
    if name.startswith("@") and "/" not in name:
        return False
    if not unscoped:
        return False

    parts = unscoped.split("-")
    if len(parts) < 2:
        return False

    for i in range(len(parts) - 1):
        os_name, arch = parts[i], parts[i + 1]
        if os_name not in PLATFORMS or arch not in ARCHITECTURES:
            continue

        if i + 2 < len(parts):
            abi = parts[i + 2]
            if abi not in ABI_SUFFIXES and i + 2 == len(parts) - 1:
                continue
        return True

    return False


def platform_group_name(name: str) -> str:
    """Strip OS, architecture and ABI tokens from a variant package name.

    ``@img/sharp-linux-x64`` and ``@img/sharp-darwin-arm64`` both map to
    ``@img/sharp`` while ``@img/sharp-libvips-linux-x64`` maps to
    ``@img/sharp-libvips``, so builds of different addons that share a
    parent stay apart.
    """
    scope, sep, unscoped = name.rpartition("/")
    platform_tokens = PLATFORMS | ARCHITECTURES | ABI_SUFFIXES
    kept = [part for part in unscoped.split("-") if part not in platform_tokens]
    return f"{scope}{sep}{'-'.join(kept)}"
