"""Command Line Interface for Graph OAuth (graphoauth)."""

import argparse
import logging
import os
import sys

import requests
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from graphoauth.core.config import CHUNK_SIZE, ENV_CLIENT_ID, ENV_TENANT_ID, ENV_USER_ID
from graphoauth.core.errors import GraphOAuthError
from graphoauth.credentials.authorization_code import AuthorizationCodeCredential
from graphoauth.credentials.client_credentials import ClientCredentialsCredential
from graphoauth.credentials.device_code import DeviceCodeCredential
from graphoauth.credentials.environment import EnvironmentCredential
from graphoauth.credentials.open_id import OpenIdCredential
from graphoauth.identity.app_config import AppConfig
from graphoauth.identity.authority import AzureCloudInstance
from graphoauth.identity.authorization_urls import ImplicitAuthorizationUrl
from graphoauth.identity.pkce import ProofKeyCodeExchange
from graphoauth.services.upload import GraphUploader, validate_chunk_size
from graphoauth.utils.progress import (
    create_file_progress,
    display_device_code,
    display_drive_item,
    display_token_summary,
)

console = Console()

CLOUDS = {
    "public": AzureCloudInstance.AZURE_PUBLIC,
    "china": AzureCloudInstance.AZURE_CHINA,
    "germany": AzureCloudInstance.AZURE_GERMANY,
    "usgov": AzureCloudInstance.AZURE_US_GOVERNMENT,
}


def configure_logging(verbose):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def app_config_from_args(args):
    """Build an AppConfig from the shared command-line options."""
    return AppConfig(
        client_id=args.client_id or os.getenv(ENV_CLIENT_ID) or "",
        tenant_id=args.tenant or os.getenv(ENV_TENANT_ID),
        azure_cloud_instance=CLOUDS[args.cloud],
        scope=args.scope or [],
        redirect_uri=getattr(args, "redirect_uri", None),
    )


def build_authorization_url(args):
    """Return (url, pkce, nonce) for the requested sign-in flow."""
    app_config = app_config_from_args(args)
    pkce = None

    if args.flow == "admin-consent":
        builder = ClientCredentialsCredential.authorization_url_builder(app_config, state=args.state)
        return builder.url(), pkce, None

    options = {
        "state": args.state,
        "prompt": args.prompt,
        "login_hint": args.login_hint,
        "response_type": args.response_type,
        "nonce": args.nonce,
    }
    if args.flow == "openid":
        builder = OpenIdCredential.authorization_url_builder(app_config, **options)
    elif args.flow == "implicit":
        builder = ImplicitAuthorizationUrl(app_config, **options)
    else:
        builder = AuthorizationCodeCredential.authorization_url_builder(app_config, **options)
        if args.flow == "pkce":
            pkce = ProofKeyCodeExchange.generate()
            builder.with_pkce(pkce)

    return builder.url(), pkce, builder.nonce


def handle_auth_url_command(args):
    """Handle the auth-url command."""
    url, pkce, nonce = build_authorization_url(args)
    console.print(Panel(url, title="[bold blue]🔗 Sign-in URL[/bold blue]", border_style="blue"))
    if pkce is not None:
        console.print(f"[yellow]Keep this code verifier for the token request:[/yellow] {pkce.code_verifier}")
    if nonce is not None:
        console.print(f"[yellow]Check the ID token against this nonce:[/yellow] {nonce}")


def handle_token_command(args):
    """Handle the token command."""
    credential = EnvironmentCredential.resolve(scope=args.scope)
    display_token_summary(credential.get_token_silent())


def handle_device_code_command(args):
    """Handle the device-code command."""
    credential = DeviceCodeCredential(app_config_from_args(args))
    token = credential.acquire_token_interactive(on_device_code=display_device_code)
    display_token_summary(token)


def handle_upload_command(args):
    """Handle the upload command."""
    user_id = args.user_id or os.getenv(ENV_USER_ID)
    if not user_id:
        console.print(f"❌ [bold red]ERROR: Missing required environment variable: {ENV_USER_ID}")
        sys.exit(1)

    if not os.path.isfile(args.local_file_path):
        console.print(f"\n❌ [bold red]ERROR: The path '{args.local_file_path}' is not a file.")
        sys.exit(1)

    uploader = GraphUploader(EnvironmentCredential.resolve())
    file_size = os.path.getsize(args.local_file_path)

    if args.no_progress:
        item = uploader.upload_file(user_id, args.local_file_path, args.remote_folder, args.chunk_size)
    else:
        progress = create_file_progress(os.path.basename(args.local_file_path))
        with progress:
            task = progress.add_task("", total=file_size)

            def progress_callback(bytes_uploaded):
                progress.update(task, advance=bytes_uploaded)

            item = uploader.upload_file(
                user_id, args.local_file_path, args.remote_folder, args.chunk_size, progress_callback
            )

    display_drive_item(item)


def chunk_size_type(value):
    try:
        return validate_chunk_size(int(value))
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def add_app_arguments(parser):
    parser.add_argument("--client-id", help=f"Application (client) id. Defaults to ${ENV_CLIENT_ID}.")
    parser.add_argument("--tenant", help=f"Tenant id or authority. Defaults to ${ENV_TENANT_ID}, then 'common'.")
    parser.add_argument("--cloud", choices=sorted(CLOUDS), default="public", help="Azure cloud instance.")
    parser.add_argument("-s", "--scope", nargs="+", default=[], help="Scopes to request.")


def create_argument_parser():
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description="Graph OAuth (graphoauth) - Acquire Microsoft identity platform tokens and upload files to OneDrive.",
        epilog="""
        Credentials for the token and upload commands are read from AZURE_TENANT_ID,
        AZURE_CLIENT_ID and AZURE_CLIENT_SECRET, or AZURE_CLIENT_ID, AZURE_USERNAME
        and AZURE_PASSWORD.
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    auth_url_parser = subparsers.add_parser("auth-url", help="Print a sign-in or admin consent URL")
    add_app_arguments(auth_url_parser)
    auth_url_parser.add_argument(
        "-f",
        "--flow",
        choices=["code", "pkce", "openid", "implicit", "admin-consent"],
        default="code",
        help="Which grant the URL is for. Default is 'code'.",
    )
    auth_url_parser.add_argument("-r", "--redirect-uri", help="Redirect URI registered for the app.")
    auth_url_parser.add_argument("--state", help="Opaque value returned with the response.")
    auth_url_parser.add_argument("--nonce", help="Nonce for id_token responses.")
    auth_url_parser.add_argument("--prompt", nargs="+", help="login, none, consent, select_account or create.")
    auth_url_parser.add_argument("--login-hint", help="Pre-fill the username on the sign-in page.")
    auth_url_parser.add_argument("--response-type", nargs="+", help="Override the response type.")

    token_parser = subparsers.add_parser("token", help="Acquire a token from environment credentials")
    token_parser.add_argument("-s", "--scope", nargs="+", default=[], help="Scopes to request.")

    device_parser = subparsers.add_parser("device-code", help="Sign in with the device code flow")
    add_app_arguments(device_parser)

    upload_parser = subparsers.add_parser("upload", help="Upload a file through an upload session")
    upload_parser.add_argument("local_file_path", help="The local file to upload.")
    upload_parser.add_argument(
        "-r",
        "--remote-folder",
        default="",
        help="The destination folder in OneDrive. If not specified, uploads to the root.",
    )
    upload_parser.add_argument(
        "-c",
        "--chunk-size",
        type=chunk_size_type,
        default=CHUNK_SIZE,
        help=f"Upload session chunk size in bytes, a multiple of 327680. Default is {CHUNK_SIZE} bytes.",
    )
    upload_parser.add_argument("-u", "--user-id", help=f"Target user. Defaults to ${ENV_USER_ID}.")
    upload_parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar.")

    return parser


def main(argv=None):
    """Main function to handle command-line arguments and execute commands."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.verbose)

    handlers = {
        "auth-url": handle_auth_url_command,
        "token": handle_token_command,
        "device-code": handle_device_code_command,
        "upload": handle_upload_command,
    }

    try:
        handlers[args.command](args)
    except GraphOAuthError as e:
        console.print(f"\n❌ [bold red]ERROR: {e}")
        sys.exit(1)
    except requests.exceptions.RequestException as e:
        console.print(f"\n❌ [bold red]ERROR: Request to Microsoft failed: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
