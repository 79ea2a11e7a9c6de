"""Starter .hunkstage.toml and keymap templates."""

DEFAULT_TOML = """\
# hunkstage configuration
version = "1.0"

[diff]
include_untracked = true  # show untracked files as new files on the unstaged side
context_lines = 3         # lines of context around each change (git diff --unified)

[ui]
collapse_files = false    # start with every file folded
show_legend = true
confirm_discard = true    # ask before discarding working tree changes

[keys]
# keymap_file = ".hunkstage-keys.yaml"

[logging]
# file = "/tmp/hunkstage.log"   # empty = no logging
level = "info"                  # debug | info | warning | error
"""

DEFAULT_KEYMAP_YAML = """\
# hunkstage key bindings. Each entry replaces the keys of one command.
# Commands: navigate-up, navigate-down, expand, collapse, toggle, stage,
# unstage, discard, reload, hide-legend, quit
- command: navigate-down
  keys: [DOWN, j, CTRL_N]
- command: navigate-up
  keys: [UP, k, CTRL_P]
- command: discard
  keys: [D]
  label: discard
"""
