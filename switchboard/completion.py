r"""
Switchboard Bash completion.

Overview
- bash_completion_spec(table, **config) -> str
  • the "local" variable block describing one command's options:
      local cmd_shortopts="-h -v"
      local cmd_longopts="--help --verbose"
      local cmd_optargs="-f=file --file=file"
      local cmd_argtypes="file none"     (only when argtypes are given)
- bash_completion(table, name=..., **config) -> str
  • a complete, self-contained completion script for one program, registered
    with `complete -F`.

Completion hints
- Each value-taking option gets a hint: its own `completion`, else its type's
  `completion`, else the type name, else "none".
- Hints understood by the generated script:
  • none: complete nothing,
  • file: complete filenames,
  • FOO:  call the Bash function complete_FOO with the word being completed
          when it is defined (it prints candidates, one per line), otherwise
          fall back to filenames.
- complete_FOO functions are typically shipped through `spec_extra`, which is
  appended verbatim to the end of the script.

Positionals
- argtypes gives one hint per positional argument; positionals past the end
  reuse the last hint. Without argtypes Bash's default completion is used.

Hidden options stay out of the offered option names, but their arguments are
still completed when typed by hand.
"""
import re
import shlex
import textwrap

from .utils import *


def _words(field, values, /):
    """Internal: validate a list of completion hints (ASCII word characters)."""
    if isinstance(values, str):
        raise TypeError("completion %r must be a list of strings, not a string" % field)
    values = tuple(values)
    for value in values:
        if not isinstance(value, str):
            raise TypeError("completion %r must contain only strings" % field)
        elif not re.fullmatch(r"\w+", value, re.ASCII):
            raise ValueError("completion %r contains an invalid hint %r" % (field, value))
    return values


def _hint(table, option, /):
    optiontype = table.typeof(option)
    hint = option.completion or optiontype.completion or optiontype.name
    if not re.fullmatch(r"\w+", hint, re.ASCII):
        return "none"
    return hint


def bash_completion_spec(table, /, *, context="", include_hidden=False, argtypes=Unset):
    """
    Render the Bash "local" declarations describing table's options.

    Parameters
    - context: infix for the variable names (cmd<context>_shortopts, ...),
      used when one script completes several subcommands.
    - include_hidden: also offer hidden options' names.
    - argtypes: completion hints for positional arguments, in order.
    """
    if not isinstance(context, str):
        raise TypeError("completion 'context' must be a string")
    elif not re.fullmatch(r"\w*", context, re.ASCII):
        raise ValueError("completion 'context' must contain only letters, digits and underscores")

    shorts = []
    longs = []
    optargs = []
    for option in table.options:
        takes_arg = table.typeof(option).takes_arg
        if takes_arg:
            hint = _hint(table, option)
            optargs.extend("%s=%s" % (flag, hint) for flag in option.flags)
        if option.hidden and not include_hidden:
            continue
        for flag in option.flags:
            (longs if flag.startswith("--") else shorts).append(flag)

    lines = [
        'local cmd%s_shortopts="%s"' % (context, " ".join(shorts)),
        'local cmd%s_longopts="%s"' % (context, " ".join(longs)),
        'local cmd%s_optargs="%s"' % (context, " ".join(optargs)),
    ]
    if argtypes is not Unset:
        lines.append('local cmd%s_argtypes="%s"' % (context, " ".join(_words("argtypes", argtypes))))
    return "\n".join(lines) + "\n"


_template = """\
# Bash completion for {name}, generated by switchboard.
#
# Source this file from ~/.bashrc, or install it where bash-completion
# looks for completions (e.g. /usr/local/etc/bash_completion.d/{name}).

_{function}_optarg_type() {{
    # print the completion hint of an option's argument (nothing for presence-only options)
    local optarg
    for optarg in $cmd_optargs; do
        if [[ "${{optarg%%=*}}" == "$1" ]]; then
            echo "${{optarg#*=}}"
            return 0
        fi
    done
}}

_{function}_complete_type() {{
    local type="$1" word="$2"
    if [[ "$type" == "none" ]]; then
        COMPREPLY=()
    elif [[ "$type" != "file" ]] && declare -F "complete_$type" >/dev/null; then
        local IFS=$'\\n'
        COMPREPLY=( $(compgen -W "$("complete_$type" "$word")" -- "$word") )
    else
        compopt -o filenames 2>/dev/null
        COMPREPLY=( $(compgen -f -- "$word") )
    fi
}}

_{function}_completer() {{
{spec}
    local cur="${{COMP_WORDS[COMP_CWORD]}}"
    local prev=""
    (( COMP_CWORD > 0 )) && prev="${{COMP_WORDS[COMP_CWORD-1]}}"
    local type word i

    # "--name=value" arrives as one word or, with '=' in COMP_WORDBREAKS, as three
    if [[ "$cur" == --*=* ]]; then
        type=$(_{function}_optarg_type "${{cur%%=*}}")
        _{function}_complete_type "${{type:-none}}" "${{cur#*=}}"
        # the whole word is replaced, so candidates keep their "--name=" prefix
        (( ${{#COMPREPLY[@]}} )) && COMPREPLY=( "${{COMPREPLY[@]/#/${{cur%%=*}}=}}" )
        return 0
    elif [[ "$cur" == "=" && "$prev" == --* ]]; then
        type=$(_{function}_optarg_type "$prev")
        _{function}_complete_type "${{type:-none}}" ""
        return 0
    elif [[ "$prev" == "=" ]] && (( COMP_CWORD > 1 )) && [[ "${{COMP_WORDS[COMP_CWORD-2]}}" == --* ]]; then
        type=$(_{function}_optarg_type "${{COMP_WORDS[COMP_CWORD-2]}}")
        _{function}_complete_type "${{type:-none}}" "$cur"
        return 0
    fi

    # walk the words before the cursor: skip option arguments, count positionals
    local options=1 nargs=0 pending=""
    for (( i = 1; i < COMP_CWORD; i++ )); do
        word="${{COMP_WORDS[i]}}"
        if [[ -n "$pending" ]]; then
            pending=""
        elif [[ "$word" == "=" ]]; then
            (( i++ ))
        elif (( options )) && [[ "$word" == "--" ]]; then
            options=0
        elif (( options )) && [[ "$word" == --* ]]; then
            [[ "$word" != *=* && "${{COMP_WORDS[i+1]}}" != "=" && -n "$(_{function}_optarg_type "$word")" ]] && pending=1
        elif (( options )) && [[ "$word" == -?* ]]; then
            # the first value-taking letter of a bundle expects the next word only when it is last
            local j
            for (( j = 1; j < ${{#word}}; j++ )); do
                if [[ -n "$(_{function}_optarg_type "-${{word:j:1}}")" ]]; then
                    (( j == ${{#word}} - 1 )) && pending=1
                    break
                fi
            done
        else
            nargs=$(( nargs + 1 ))
        fi
    done

    if [[ -n "$pending" ]]; then
        if [[ "$prev" == --* ]]; then
            type=$(_{function}_optarg_type "$prev")
        else
            type=$(_{function}_optarg_type "-${{prev: -1}}")
        fi
        _{function}_complete_type "${{type:-none}}" "$cur"
        return 0
    fi

    if (( options )) && [[ "$cur" == -* ]]; then
        COMPREPLY=( $(compgen -W "$cmd_shortopts $cmd_longopts" -- "$cur") )
        return 0
    fi

    if [[ -z "${{cmd_argtypes+set}}" ]]; then
        compopt -o default 2>/dev/null
        COMPREPLY=()
        return 0
    fi
    local argtypes=( $cmd_argtypes )
    if (( ${{#argtypes[@]}} == 0 )); then
        COMPREPLY=()
        return 0
    fi
    (( nargs >= ${{#argtypes[@]}} )) && nargs=$(( ${{#argtypes[@]}} - 1 ))
    _{function}_complete_type "${{argtypes[nargs]}}" "$cur"
}}

complete -F _{function}_completer {quoted}
"""


def bash_completion(table, /, *, name, spec_extra=Unset, argtypes=Unset):
    """
    Render a complete Bash completion script for program `name`.

    Parameters
    - name: the program name completions are registered for.
    - spec_extra: Bash text appended verbatim (e.g. complete_FOO functions).
    - argtypes: completion hints for positional arguments, in order.
    """
    if not isinstance(name, str):
        raise TypeError("completion 'name' must be a string")
    elif not name.strip() or re.search(r"\s", name):
        raise ValueError("completion 'name' must be a non-empty program name without whitespace")
    if not isinstance(spec_extra, str | Unset):
        raise TypeError("completion 'spec_extra' must be a string")

    spec = bash_completion_spec(table, argtypes=argtypes)
    script = _template.format(
        name=name,
        function=re.sub(r"\W", "_", name, flags=re.ASCII),
        quoted=shlex.quote(name),
        spec=textwrap.indent(spec, "    ").rstrip("\n"),
    )
    if spec_extra:
        script += "\n" + spec_extra.rstrip("\n") + "\n"
    return script


__all__ = (
    "bash_completion_spec",
    "bash_completion",
)
