"""
Shell completion scripts.
"""

from typing import Dict

_COMMANDS = "dump extract request run complete commands info config completion"


def get_bash_completion() -> str:
    """Bash completion script."""
    return """
# Bash completion for depsdev-dump
_depsdev_dump_completion() {
    local cur prev opts
    COMPREPLY=()
    cur="${COMP_WORDS[COMP_CWORD]}"
    prev="${COMP_WORDS[COMP_CWORD-1]}"

    if [[ ${COMP_CWORD} == 1 ]]; then
        opts="%s --version --help"
        COMPREPLY=( $(compgen -W "${opts}" -- ${cur}) )
        return 0
    fi

    if [[ "${COMP_WORDS[1]}" == "config" && ${COMP_CWORD} == 2 ]]; then
        opts="init show validate"
        COMPREPLY=( $(compgen -W "${opts}" -- ${cur}) )
        return 0
    fi

    if [[ "${COMP_WORDS[1]}" == "run" || "${COMP_WORDS[1]}" == "complete" ]] && [[ ${COMP_CWORD} == 2 ]]; then
        COMPREPLY=( $(compgen -W "depsdev-dump" -- ${cur}) )
        return 0
    fi

    case "${prev}" in
        --output-file|-o)
            COMPREPLY=( $(compgen -f -- ${cur}) )
            return 0
            ;;
        --output-format)
            COMPREPLY=( $(compgen -W "console json" -- ${cur}) )
            return 0
            ;;
        *)
            COMPREPLY=( $(compgen -d -- ${cur}) )
            return 0
            ;;
    esac
}

complete -F _depsdev_dump_completion depsdev-dump
""" % _COMMANDS


def get_zsh_completion() -> str:
    """Zsh completion script."""
    return """
#compdef depsdev-dump

_depsdev_dump() {
    local context state state_descr line
    typeset -A opt_args

    _arguments -C \\
        '1: :_depsdev_dump_commands' \\
        '*:: :->args'

    case $state in
        args)
            case $words[1] in
                dump)
                    _arguments \\
                        '--raw[Print the response without a panel]' \\
                        '--output-file[Save the response to a file]:file:_files' \\
                        '*:project directory:_directories'
                    ;;
                extract)
                    _arguments \\
                        '--output-format[Output format]:format:(console json)' \\
                        '*:project directory:_directories'
                    ;;
                run|complete)
                    _arguments '1: :(depsdev-dump)' '*:project directory:_directories'
                    ;;
                config)
                    _arguments '1: :(init show validate)'
                    ;;
                *)
                    _arguments '*:project directory:_directories'
                    ;;
            esac
            ;;
    esac
}

_depsdev_dump_commands() {
    local commands
    commands=(
        'dump:Query deps.dev for the workspace dependencies'
        'extract:List the workspace dependencies'
        'request:Print the batch request body without sending it'
        'run:Run a slash command by name'
        'complete:Complete the arguments of a slash command'
        'commands:List slash commands'
        'info:Show usage information'
        'config:Configuration management commands'
        'completion:Generate shell completion scripts'
    )
    _describe 'command' commands
}

_depsdev_dump "$@"
"""


def get_fish_completion() -> str:
    """Fish completion script."""
    lines = ["", "# Fish completion for depsdev-dump", ""]
    for name in _COMMANDS.split():
        lines.append(
            f"complete -c depsdev-dump -n '__fish_use_subcommand' -a '{name}'"
        )
    lines.extend(
        [
            "complete -c depsdev-dump -n '__fish_use_subcommand' -l version -d 'Show version'",
            "complete -c depsdev-dump -n '__fish_seen_subcommand_from dump' -l raw -d 'No panel'",
            "complete -c depsdev-dump -n '__fish_seen_subcommand_from dump' -l output-file -F",
            "complete -c depsdev-dump -n '__fish_seen_subcommand_from extract' -l output-format -x -a 'console json'",
            "complete -c depsdev-dump -n '__fish_seen_subcommand_from run complete' -x -a 'depsdev-dump'",
            "complete -c depsdev-dump -n '__fish_seen_subcommand_from config' -a 'init show validate'",
            "",
        ]
    )
    return "\n".join(lines)


def get_completion_scripts() -> Dict[str, str]:
    """Return all completion scripts."""
    return {
        "bash": get_bash_completion(),
        "zsh": get_zsh_completion(),
        "fish": get_fish_completion(),
    }
