"""
A command line interface for mpw.
"""

import logging
import os
import subprocess
import sys
from functools import wraps

import click
import pyperclip
from click import confirm, echo
from tabulate import tabulate

from mpw import __version__
from mpw.core import VARIANT_ALIASES, VARIANTS, Config, Session, Site
from mpw.crypto import LATEST, MAX_U32, Version
from mpw.exceptions import AuthenticationFailed, ConfigurationError, MpwError
from mpw.secret import SecretBuffer
from mpw.template import ALIASES, DESCRIPTIONS, TEMPLATES, random_password

DEFAULT_PATH = os.path.expanduser('~/.mpw.toml')

EXIT_FAILURE = 1
EXIT_AUTHENTICATION = 3
EXIT_CONFIGURATION = 4

CLASS = click.Choice(list(TEMPLATES) + list(ALIASES))
VARIANT = click.Choice(list(VARIANTS) + list(VARIANT_ALIASES))
COUNTER = click.IntRange(0, MAX_U32)
VERSION = click.Choice([str(int(v)) for v in Version])

CLASS_HELP = (
    'The password class, defaults to long (name for logins, phrase for answers). '
    + ' '.join(f'{name}: {DESCRIPTIONS[name]}' for name in TEMPLATES)
)

IDENTICON_COLORS = {
    'red': 'red',
    'green': 'green',
    'yellow': 'yellow',
    'blue': 'blue',
    'magenta': 'magenta',
    'cyan': 'cyan',
    'mono': 'white',
}


def bail(message, exit_code=EXIT_FAILURE):
    """
    Abort the CLI with a message.
    """
    e = click.ClickException(message)
    e.exit_code = exit_code
    raise e


def prompt(*args, **kwargs):
    """
    Prompts a user for input.

    This is simply a wrapper around click.prompt() so that it can be replaced
    in one place.
    """
    return click.prompt(*args, **kwargs)


def handle_mpw_errors(f):
    """
    Translate MpwErrors to ClickExceptions.

    Authentication failures and configuration failures exit with their own
    exit codes.

    Args:
        f (function): the function to decorate.

    Raises:
        click.ClickException: when the function raises an MpwError.

    Returns:
        function: the decorated function.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except AuthenticationFailed as e:
            bail(str(e), exit_code=EXIT_AUTHENTICATION)
        except ConfigurationError as e:
            bail(str(e), exit_code=EXIT_CONFIGURATION)
        except MpwError as e:
            bail(str(e))
        except OSError as e:
            bail(f'{e.filename}: {e.strerror}', exit_code=EXIT_CONFIGURATION)

    return decorated_function


def clear_clipboard(timeout):
    """
    Clear the clipboard after a timeout.

    Args:
        timeout (int): the timeout.
    """
    code = f"import pyperclip, time; time.sleep({timeout}); pyperclip.copy('');"
    command = f'{sys.executable} -c "{code}"'
    subprocess.Popen(
        command,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        shell=True,
    )


def copy_to_clipboard(text, timeout=None):
    """
    Copy the given text to clipboard.

    Args:
        text (str): the text to copy to the clipboard.
        timeout (int): clear the clipboard after this amount of seconds.
    """
    pyperclip.copy(text)

    if timeout:
        clear_clipboard(timeout)


def styled_identicon(identicon):
    """
    Color an identicon for the terminal.

    Args:
        identicon (Identicon): the identicon.

    Returns:
        str: the styled glyphs.
    """
    return click.style(identicon.text, fg=IDENTICON_COLORS[identicon.color_name])


class Context:
    """
    The state shared by all mpw commands.
    """

    def __init__(self, config, full_name=None, version=LATEST):
        """
        Create a new Context.

        Args:
            config (Config): the configuration document.
            full_name (str): a full name overriding the document's.
            version (Version): the algorithm version.
        """
        self.config = config
        self.full_name = full_name
        self.version = version

    def ask_user_for_full_name(self):
        """
        Return the full name, prompting the user if none is configured.

        Returns:
            str: the full name.
        """
        if not self.full_name:
            self.full_name = self.config.full_name or prompt('Enter your full name')

        return self.full_name

    def session(self):
        """
        Prompt for the master password and start a Session.

        The identicon is shown before the master key is stretched.

        Returns:
            Session: the new session.
        """
        full_name = self.ask_user_for_full_name()
        master = SecretBuffer(prompt('Enter master password', hide_input=True))
        session = Session(full_name, master, self.version)
        echo(f'[ {styled_identicon(session.identicon())} ]', err=True)
        return session


def site_options(f):
    """
    Add the site derivation options to a command.
    """
    options = [
        click.option('--type', '-t', 'password_class', type=CLASS, help=CLASS_HELP),
        click.option('--counter', '-c', type=COUNTER, help='The site counter.'),
        click.option(
            '--variant',
            '-v',
            type=VARIANT,
            help='The kind of content to generate (password, login or answer).',
        ),
        click.option(
            '--context',
            '-C',
            help='Empty for a universal site or the most significant word(s) '
            'of the question.',
        ),
    ]

    for option in reversed(options):
        f = option(f)

    return f


@click.group(context_settings={'help_option_names': ['-h', '--help']})
@click.version_option(
    __version__, '-V', '--version', prog_name='mpw', message='%(prog)s %(version)s'
)
@click.option(
    '--config',
    'path',
    type=click.Path(dir_okay=False),
    default=DEFAULT_PATH,
    envvar='MPW_CONFIG',
    show_default=True,
    help='The path to the configuration document.',
)
@click.option(
    '--full-name', '-u', envvar='MPW_FULLNAME', help='The full name of the user.'
)
@click.option(
    '--algorithm',
    '-a',
    type=VERSION,
    default=str(int(LATEST)),
    show_default=True,
    help='The algorithm version to use.',
)
@click.option('--verbose', is_flag=True, help='Log what is being derived.')
@click.pass_context
@handle_mpw_errors
def cli(ctx, path, full_name, algorithm, verbose):
    """
    A stateless password management solution.

    Passwords are derived from your full name, your master password and the
    site name, so they never need to be stored.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG)

    try:
        config = Config.from_path(path)
    except FileNotFoundError:
        config = Config()

    ctx.obj = Context(config.with_path(path), full_name, Version(int(algorithm)))


@cli.command('get')
@click.argument('site')
@site_options
@click.option(
    '--clipboard/--no-clipboard',
    default=True,
    show_default=True,
    help='Whether to copy the password to the clipboard or print it out.',
)
@click.pass_obj
@handle_mpw_errors
def mpw_get(obj, site, password_class, counter, variant, context, clipboard):
    """
    Retrieve a password.

    Derive the password for SITE, or decrypt it if SITE is a stored site.
    Options override the values in the configuration document.
    """
    config = obj.config
    overrides = (password_class, counter, variant, context)

    if config.contains(site):
        entry = config.get(site)

        if entry.stored and any(o is not None for o in overrides):
            bail(f'{site!r} is a stored site, its options cannot be overridden')
    else:
        entry = Site.new(site)

    if not entry.stored:
        entry = Site.new(
            site,
            password_class=password_class or entry.password_class,
            counter=entry.counter if counter is None else counter,
            variant=variant or entry.variant,
            context=context or entry.context,
        )

    with obj.session() as session:
        password = session.site_password(entry)

    if clipboard:
        copy_to_clipboard(password, timeout=20)
        echo('Password copied to clipboard.')
    else:
        echo(password)


@cli.command('add')
@click.argument('site')
@site_options
@click.option(
    '--stored', is_flag=True, help='Encrypt a chosen secret instead of deriving one.'
)
@click.option('--secret', '-s', help='The secret to store.')
@click.option(
    '--random', is_flag=True, help='Store a random secret of the password class.'
)
@click.pass_obj
@handle_mpw_errors
def mpw_add(obj, site, password_class, counter, variant, context, stored, secret, random):
    """
    Add a site.

    Add SITE to the configuration document. Stored sites require the master
    password.
    """
    config = obj.config

    if config.contains(site):
        bail(f'{site!r} already exists')

    if (secret or random) and not stored:
        raise click.UsageError('--secret and --random require --stored')

    if stored and any(o is not None for o in (counter, variant, context)):
        raise click.UsageError(
            '--counter, --variant and --context cannot be used with --stored'
        )

    if stored and password_class is not None and not random:
        raise click.UsageError('--type requires --random when used with --stored')

    if stored:
        if random:
            secret = random_password(password_class or 'long')
        elif not secret:
            secret = prompt('Enter secret', confirmation_prompt=True, hide_input=True)

        if not secret:
            raise click.UsageError('the secret must not be empty')

        with obj.session() as session, SecretBuffer(secret) as buffer:
            entry = session.seal(site, buffer)
    else:
        entry = Site.new(
            site,
            password_class=password_class,
            counter=counter,
            variant=variant,
            context=context,
        )

    if not config.full_name and obj.full_name:
        config.full_name = obj.full_name

    config.add(entry)
    config.save()
    echo(f'Stored {site!r}!')


@cli.command('ls')
@click.argument('pattern', required=False)
@click.pass_obj
@handle_mpw_errors
def mpw_ls(obj, pattern):
    """
    List the sites.
    """
    names = obj.config.names(pattern=pattern)

    if not names:
        echo('No configured sites', err=True)
    else:
        rows = [obj.config.get(name).display() for name in names]
        echo(tabulate(rows, headers=('Site', 'Kind', 'Class', 'Counter', 'Variant')))


@cli.command('rm')
@click.argument('site')
@click.option(
    '--force', '-f', is_flag=True, help='Do not ask for confirmation before removing.'
)
@click.pass_obj
@handle_mpw_errors
def mpw_rm(obj, site, force):
    """
    Remove a site.

    Remove the site matching SITE from the configuration document. Removing a
    stored site loses its secret.
    """
    config = obj.config
    site = config.resolve(site)

    if not force:
        confirm(f'Remove {site!r}?', abort=True)

    config.remove(site)
    config.save()
    echo(f'Removed {site!r}!')


@cli.command('identicon')
@click.pass_obj
@handle_mpw_errors
def mpw_identicon(obj):
    """
    Show the identicon.

    The identicon is a visual fingerprint of your full name and master
    password. Remember it to notice typos in the master password.
    """
    full_name = obj.ask_user_for_full_name()

    master = SecretBuffer(prompt('Enter master password', hide_input=True))

    with Session(full_name, master, obj.version) as session:
        identicon = session.identicon()

    echo(styled_identicon(identicon))
