"""Client/modded crash patterns (part of extensible pattern library).

These patterns detect common Minecraft crash causes directly from log content.
Covers: Java version mismatch, memory exhaustion, Mixin failures, missing dependencies,
duplicate mods, and graphics driver crashes.
"""

from cozylogs.diagnostics.log_pattern_matcher import LogPattern

# Mod compiled for a newer Java than the one running the game
JAVA_CLASS_VERSION_MISMATCH = LogPattern(
    pattern_id="java_class_version_mismatch",
    title="Java version too old",
    patterns=[
        r"java\.lang\.UnsupportedClassVersionError",
        r"has been compiled by a more recent version of the Java Runtime",
    ],
    message_template=(
        "**Java version too old**\n"
        "Something was compiled for class file version `{class_version}`, but this Java only "
        "supports up to `{runtime_version}`. Update Java to the version your Minecraft release requires."
    ),
    context_extractors={
        "class_version": r"class file version ([\d.]+)",
        "runtime_version": r"class file versions up to ([\d.]+)",
    },
)

# Heap or metaspace exhausted
OUT_OF_MEMORY = LogPattern(
    pattern_id="out_of_memory",
    title="Game ran out of memory",
    patterns=[
        r"java\.lang\.OutOfMemoryError",
    ],
    message_template=(
        "**The game ran out of memory** (`{kind}`)\n"
        "Allocate more memory to the game, or remove memory-heavy mods and resource packs."
    ),
    context_extractors={
        "kind": r"java\.lang\.OutOfMemoryError: ([^\n]+)",
    },
)

# Mixin transformer could not apply a mod's mixin
MIXIN_APPLY_FAILURE = LogPattern(
    pattern_id="mixin_apply_failure",
    title="Mixin failed to apply",
    patterns=[
        r"Mixin apply for mod \S+ failed",
        r"Mixin \[[^\]]+\] from phase \[\w+\] in config \[[^\]]+\] FAILED during APPLY",
    ],
    message_template=(
        "**A mixin failed to apply** (mod `{mod}`, config `{config}`)\n"
        "This usually means two mods conflict, or the mod does not support this Minecraft version."
    ),
    context_extractors={
        "mod": r"Mixin apply for mod (\S+) failed",
        "config": r"in config \[([^\]]+)\]",
    },
)

# Fabric/Quilt dependency resolution
MISSING_DEPENDENCY = LogPattern(
    pattern_id="missing_dependency",
    title="Missing mod dependency",
    patterns=[
        r"requires .+?, which is missing!",
        r"Mod resolution failed",
    ],
    message_template=(
        "**Missing dependency**\n"
        "Mod `{mod}` requires `{dependency}`, which is not installed. Install it, or remove the mod that needs it."
    ),
    context_extractors={
        "mod": r"Mod '([^']+)' \(\S+\) \S+ requires",
        "dependency": r"requires (?:any version|version [^,]+?) of (?:mod )?'?([^',()]+?)'?(?: \(\S+\))?, which is missing!",
    },
)

DUPLICATE_MODS = LogPattern(
    pattern_id="duplicate_mods",
    title="Duplicate mods installed",
    patterns=[
        r"Found \d+ duplicate mods?",
        r"Duplicate mods found",
        r"DuplicateModsFoundException",
        r"Mod ID '[^']+' from mod file .+ has already been loaded",
    ],
    message_template=(
        "**Duplicate mods installed**\n"
        "The same mod is present more than once (e.g. `{mod}`). Keep only one copy of each mod."
    ),
    context_extractors={
        "mod": r"(?:duplicate mods?[^\n]*?|Mod ID )'([\w-]+)'",
    },
)

GRAPHICS_DRIVER_CRASH = LogPattern(
    pattern_id="graphics_driver_crash",
    title="Graphics driver crash",
    patterns=[
        r"Pixel format not accelerated",
        r"\b(?:atio6axx|atioglxx|nvoglv64|ig\w*icd64)\.dll",
    ],
    message_template=(
        "**Graphics driver problem** (`{driver}`)\n"
        "The crash happened inside the graphics driver. Update your GPU drivers."
    ),
    context_extractors={
        "driver": r"\b((?:atio6axx|atioglxx|nvoglv64|ig\w*icd64)\.dll)",
    },
)

CRASH_PATTERNS = [
    JAVA_CLASS_VERSION_MISMATCH,
    OUT_OF_MEMORY,
    MIXIN_APPLY_FAILURE,
    MISSING_DEPENDENCY,
    DUPLICATE_MODS,
    GRAPHICS_DRIVER_CRASH,
]
