"""File transfer plugin: copy single files to and from the remote host.

Transfers go through the remote executor's ``upload_file``/``download_file``
and never through the shell, so they are only available in remote mode.
"""

from __future__ import annotations

from pathlib import Path

from shellgate.plugins.base import Plugin, PluginCommand, PluginContext


def _transfer_args(args: list[str], usage: str) -> tuple[str, str]:
    if len(args) != 2 or not all(arg.strip() for arg in args):
        raise ValueError(f"Usage: {usage}")
    return args[0], args[1]


def _require_remote(ctx: PluginContext, action: str) -> None:
    if ctx.is_local_execution:
        raise ValueError(f"Cannot {action} in local mode: there is no remote host to transfer with")


def _size_kb(path: Path) -> str:
    return f"{path.stat().st_size / 1024:.2f} KB"


async def upload(ctx: PluginContext, args: list[str]) -> None:
    local, remote_path = _transfer_args(args, "shellgate run upload <local-file> <remote-path>")
    _require_remote(ctx, "upload")

    source = Path(local).expanduser().resolve()
    if not source.exists():
        raise ValueError(f"Local file not found: {local}")
    if not source.is_file():
        raise ValueError(f"Only regular files can be uploaded: {local}")

    ctx.logger.info("Uploading %s to %s", source, remote_path)
    await ctx.proxy.remote.upload_file(str(source), remote_path)
    ctx.output.write(f"Uploaded {local} to {remote_path} ({_size_kb(source)})")


async def download(ctx: PluginContext, args: list[str]) -> None:
    remote_path, local = _transfer_args(args, "shellgate run download <remote-file> <local-path>")
    _require_remote(ctx, "download")

    target = Path(local).expanduser().resolve()
    target.parent.mkdir(parents=True, exist_ok=True)

    ctx.logger.info("Downloading %s to %s", remote_path, target)
    await ctx.proxy.remote.download_file(remote_path, str(target))
    size = f" ({_size_kb(target)})" if target.is_file() else ""
    ctx.output.write(f"Downloaded {remote_path} to {local}{size}")


plugin = Plugin(
    name="file-transfer",
    version="1.0.0",
    description="Upload and download files to and from the remote host",
    author="shellgate",
    dependencies=["proxy"],
    commands=[
        PluginCommand(
            name="upload",
            aliases=["push", "put"],
            description="Upload a local file to the remote host",
            usage="shellgate run upload <local-file> <remote-path>",
            examples=["shellgate run upload ./config.yml /etc/app/config.yml"],
            handler=upload,
            mcp_name="upload_file",
        ),
        PluginCommand(
            name="download",
            aliases=["pull", "get"],
            description="Download a remote file to the local machine",
            usage="shellgate run download <remote-file> <local-path>",
            examples=["shellgate run download /var/log/app.log ./app.log"],
            handler=download,
            mcp_name="download_file",
        ),
    ],
)
