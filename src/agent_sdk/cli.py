import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

app = typer.Typer(name="agent-sdk", help="Run a tool-using agent inside a filesystem sandbox.")
console = Console()

DEFAULT_PROMPT = "List all files in this sandbox and summarize what they do"


def _build_agent(
    sandbox_root: str = "",
    max_iterations: int = 0,
    timeout: float = 0,
    require_done: bool = True,
    profile: str = "",
    model=None,
):
    """Create an Agent with the sandbox tool pack and a SandboxContext dependency."""
    from agent_sdk.agents.agent import Agent, AgentConfig
    from agent_sdk.config import Settings
    from agent_sdk.prompts.prompt_layer import render_prompt
    from agent_sdk.services.sandbox import SandboxContext
    from agent_sdk.tools.dependencies import DependencyMap
    from agent_sdk.tools.sandbox_tools import create_sandbox_tools

    current = Settings()
    ctx = SandboxContext(sandbox_root or current.sandbox_root or None)
    deps = DependencyMap()
    deps.provide(ctx)

    if model is None:
        from agent_sdk.providers.openai_model import OpenAIChatModel

        model = OpenAIChatModel.from_env(profile=profile)

    config = AgentConfig(
        require_done_tool=require_done,
        max_iterations=max_iterations or current.agent_max_iterations,
        timeout=timeout or current.agent_timeout,
        system_prompt=render_prompt("sandbox_system", working_dir=ctx.working_dir),
    )
    agent = Agent(model, tools=create_sandbox_tools(), dependencies=deps, config=config)
    return agent, ctx


@app.command()
def run(
    prompt: Optional[List[str]] = typer.Argument(None, help="Task for the agent"),
    max_iterations: int = typer.Option(0, "--max-iterations", help="Max provider round trips (0 = use config)"),
    timeout: float = typer.Option(0, "--timeout", help="Seconds for the whole run (0 = use config)"),
    require_done: bool = typer.Option(True, "--require-done/--no-require-done", help="Only stop on the done tool"),
    profile: str = typer.Option("", "--profile", help="models.yaml profile"),
    transcript: Optional[Path] = typer.Option(None, "--transcript", help="Write a markdown transcript here"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Print only the final answer"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable detailed logging"),
) -> None:
    """Run one query and stream its events."""
    from agent_sdk.agents.console_callback import CompositeCallback, ConsoleCallback, MarkdownCallback
    from agent_sdk.errors import AgentError, IterationLimitExceeded
    from agent_sdk.models.events import FinalResponse

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(name)s | %(levelname)s | %(message)s")

    task = " ".join(prompt or []).strip() or DEFAULT_PROMPT

    try:
        agent, ctx = _build_agent(
            max_iterations=max_iterations,
            timeout=timeout,
            require_done=require_done,
            profile=profile,
        )
    except AgentError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    md_cb = MarkdownCallback()
    callbacks = [md_cb]
    if not quiet:
        console.print(f"[dim]sandbox: {ctx.root_dir}[/dim]")
        console.print(f"[dim]session: {ctx.session_id}[/dim]")
        console_cb = ConsoleCallback(console, show_hidden=verbose)
        console_cb.print_tools(agent.registry)
        callbacks.append(console_cb)
    callback = CompositeCallback(callbacks)

    final = None
    try:
        for event in agent.query_stream(task):
            callback.handle(event)
            if isinstance(event, FinalResponse):
                final = event.content
    except IterationLimitExceeded as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(2)
    except AgentError as e:
        console.print(f"[red]Agent failed: {e}[/red]")
        raise typer.Exit(1)
    finally:
        if transcript is not None:
            transcript.write_text(md_cb.render(task), encoding="utf-8")

    if quiet and final is not None:
        typer.echo(final)


@app.command()
def tools() -> None:
    """List the bundled sandbox tools."""
    from agent_sdk.agents.console_callback import ConsoleCallback
    from agent_sdk.tools import ToolRegistry
    from agent_sdk.tools.sandbox_tools import create_sandbox_tools

    registry = ToolRegistry()
    registry.register_many(create_sandbox_tools())
    ConsoleCallback(console).print_tools(registry)


if __name__ == "__main__":
    app()
