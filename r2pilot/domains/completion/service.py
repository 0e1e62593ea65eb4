"""Shell completion scripts generated from the argparse command tree.

Every script completes the same thing: after ``r2pilot`` and the already
typed sub-commands, offer the next sub-commands, positional choices and
options of that command.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field

from r2pilot.core.context import CommandContext
from r2pilot.core.errors.exceptions import InvalidInputError

SHELLS = ("bash", "zsh", "fish", "powershell")

INSTALL_HINTS = {
    "bash": [
        "# Add to your ~/.bashrc:",
        "source <(r2pilot completion bash)",
        "# Or install it permanently:",
        "r2pilot completion bash > ~/.local/share/bash-completion/completions/r2pilot",
    ],
    "zsh": [
        "# Add to your ~/.zshrc (after compinit):",
        "source <(r2pilot completion zsh)",
    ],
    "fish": [
        "r2pilot completion fish > ~/.config/fish/completions/r2pilot.fish",
    ],
    "powershell": [
        "# Run in PowerShell:",
        "r2pilot completion powershell | Out-String | Invoke-Expression",
        "# Or add it to your profile:",
        "r2pilot completion powershell >> $PROFILE",
    ],
}


@dataclass
class CommandNode:
    path: str
    help: str = ""
    # (name, help)
    commands: list[tuple[str, str]] = field(default_factory=list)
    options: list[tuple[str, str]] = field(default_factory=list)
    choices: list[str] = field(default_factory=list)

    def words(self) -> list[str]:
        return [name for name, _ in self.commands] + self.choices + [opt for opt, _ in self.options]


def build_tree(parser: argparse.ArgumentParser) -> dict[str, CommandNode]:
    """Flatten the parser into ``{"files upload": CommandNode, ...}``; the root is ``""``."""
    tree: dict[str, CommandNode] = {}

    def walk(p: argparse.ArgumentParser, path: str, help_text: str) -> None:
        node = CommandNode(path=path, help=help_text)
        tree[path] = node
        for action in p._actions:
            if isinstance(action, argparse._SubParsersAction):
                helps = {a.dest: a.help or "" for a in action._choices_actions}
                for name, sub in action.choices.items():
                    node.commands.append((name, helps.get(name, "")))
                    walk(sub, f"{path} {name}".strip(), helps.get(name, ""))
            elif action.option_strings:
                if action.help == argparse.SUPPRESS:
                    continue
                for opt in action.option_strings:
                    node.options.append((opt, action.help or ""))
            elif action.choices:
                node.choices.extend(str(c) for c in action.choices)

    walk(parser, "", parser.description or "")
    return tree


def _sh_quote(value: str) -> str:
    return "'" + value.replace("'", "'\\''") + "'"


def render_bash(tree: dict[str, CommandNode], prog: str) -> str:
    func = f"_{prog.replace('-', '_')}"
    known = "|".join(f'"{path}"' for path in tree if path)
    cases = "\n".join(
        f'        "{path}") COMPREPLY=($(compgen -W {_sh_quote(" ".join(node.words()))} -- "$cur")) ;;'
        for path, node in tree.items()
    )
    return f"""# bash completion for {prog}
{func}() {{
    local cur word cmdpath i
    COMPREPLY=()
    cur="${{COMP_WORDS[COMP_CWORD]}}"
    cmdpath=""
    for ((i=1; i<COMP_CWORD; i++)); do
        word="${{COMP_WORDS[i]}}"
        case "$word" in -*) continue ;; esac
        case "${{cmdpath:+$cmdpath }}$word" in
            {known}) cmdpath="${{cmdpath:+$cmdpath }}$word" ;;
        esac
    done
    case "$cmdpath" in
{cases}
    esac
}}
complete -F {func} {prog}
"""


def render_zsh(tree: dict[str, CommandNode], prog: str) -> str:
    func = f"_{prog.replace('-', '_')}"
    known = "|".join(f'"{path}"' for path in tree if path)
    cases = "\n".join(
        f'        ("{path}") compadd -- {" ".join(_sh_quote(w) for w in node.words())} ;;'
        for path, node in tree.items()
    )
    return f"""#compdef {prog}
{func}() {{
    local word cmdpath i
    cmdpath=""
    for ((i=2; i<CURRENT; i++)); do
        word="${{words[i]}}"
        [[ "$word" == -* ]] && continue
        case "${{cmdpath:+$cmdpath }}$word" in
            ({known}) cmdpath="${{cmdpath:+$cmdpath }}$word" ;;
        esac
    done
    case "$cmdpath" in
{cases}
    esac
}}
compdef {func} {prog}
"""


def _fish_quote(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _fish_condition(path: str, tree: dict[str, CommandNode]) -> str:
    if not path:
        return "__fish_use_subcommand"
    parts = [f"__fish_seen_subcommand_from {word}" for word in path.split()]
    children = [name for name, _ in tree[path].commands]
    if children:
        parts.append(f"not __fish_seen_subcommand_from {' '.join(children)}")
    return "; and ".join(parts)


def render_fish(tree: dict[str, CommandNode], prog: str) -> str:
    lines = [f"# fish completion for {prog}", f"complete -c {prog} -f"]
    for path, node in tree.items():
        cond = _fish_quote(_fish_condition(path, tree))
        for name, help_text in node.commands:
            lines.append(f"complete -c {prog} -n {cond} -a {name} -d {_fish_quote(help_text)}")
        if node.choices:
            lines.append(f"complete -c {prog} -n {cond} -a {_fish_quote(' '.join(node.choices))}")
        for opt, help_text in node.options:
            flag = f"-l {opt[2:]}" if opt.startswith("--") else f"-s {opt[1:]}"
            lines.append(f"complete -c {prog} -n {cond} {flag} -d {_fish_quote(help_text)}")
    return "\n".join(lines) + "\n"


def _ps_quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def render_powershell(tree: dict[str, CommandNode], prog: str) -> str:
    entries = "\n".join(
        f"        {_ps_quote(path)} = @({', '.join(_ps_quote(w) for w in node.words())})"
        for path, node in tree.items()
    )
    return f"""# PowerShell completion for {prog}
Register-ArgumentCompleter -Native -CommandName {prog} -ScriptBlock {{
    param($wordToComplete, $commandAst, $cursorPosition)
    $tree = @{{
{entries}
    }}
    $cmdpath = ''
    foreach ($element in ($commandAst.CommandElements | Select-Object -Skip 1)) {{
        if ($element.Extent.EndOffset -ge $cursorPosition) {{ break }}
        $word = $element.ToString()
        if ($word.StartsWith('-')) {{ continue }}
        $candidate = if ($cmdpath) {{ "$cmdpath $word" }} else {{ $word }}
        if ($tree.ContainsKey($candidate)) {{ $cmdpath = $candidate }}
    }}
    $tree[$cmdpath] | Where-Object {{ $_ -like "$wordToComplete*" }} | ForEach-Object {{
        [System.Management.Automation.CompletionResult]::new($_, $_, 'ParameterValue', $_)
    }}
}}
"""


_RENDERERS = {
    "bash": render_bash,
    "zsh": render_zsh,
    "fish": render_fish,
    "powershell": render_powershell,
}


def generate_completion(parser: argparse.ArgumentParser, shell: str, *, prog: str = "r2pilot") -> str:
    renderer = _RENDERERS.get(shell.lower())
    if renderer is None:
        raise InvalidInputError(f"Unsupported shell: {shell}. Supported shells: {', '.join(SHELLS)}")
    return renderer(build_tree(parser), prog)


def print_completion(ctx: CommandContext, parser: argparse.ArgumentParser, shell: str) -> None:
    ctx.console.out(generate_completion(parser, shell), highlight=False, end="")
    ctx.err_console.print("[green]Completion generated.[/green] Installation:")
    for line in INSTALL_HINTS[shell.lower()]:
        ctx.err_console.print(f"  {line}", highlight=False, markup=False)
