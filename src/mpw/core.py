"""
The core mpw module.
"""

import logging
import re
from types import MappingProxyType

from serde import fields

from mpw.crypto import LATEST, Purpose, derive_seed, get_version, stretch
from mpw.exceptions import (
    ConfigMalformed,
    ConfigurationError,
    SiteError,
    UnsupportedVariant,
)
from mpw.identicon import identicon
from mpw.model import Counter, Encrypted, Model
from mpw.secret import SecretBuffer
from mpw.template import TEMPLATES, render, resolve_class
from mpw.vault import decrypt, encrypt

logger = logging.getLogger(__name__)

GENERATED = 'generated'
STORED = 'stored'

VARIANTS = MappingProxyType(
    {
        'password': Purpose.AUTHENTICATION,
        'login': Purpose.IDENTIFICATION,
        'answer': Purpose.RECOVERY,
    }
)

VARIANT_ALIASES = MappingProxyType({'p': 'password', 'l': 'login', 'a': 'answer'})

DEFAULT_CLASSES = MappingProxyType(
    {'password': 'long', 'login': 'name', 'answer': 'phrase'}
)


def resolve_variant(name):
    """
    Resolve a variant name or alias to its canonical name.

    Args:
        name (str): the variant name, for example `'login'` or `'l'`.

    Returns:
        str: the canonical variant name.

    Raises:
        UnsupportedVariant: if the name is not a known variant.
    """
    name = VARIANT_ALIASES.get(name, name)

    if name not in VARIANTS:
        raise UnsupportedVariant(f'unsupported site variant {name!r}')

    return name


class Site(Model):
    """
    A site entry in the configuration document.

    Fields that hold their default value are left as `None` so that they are
    omitted from the document.
    """

    name: fields.Str()
    kind: fields.Optional(fields.Choice((GENERATED, STORED)), rename='type')
    password_class: fields.Optional(fields.Choice(tuple(TEMPLATES)), rename='class')
    counter: fields.Optional(Counter)
    variant: fields.Optional(fields.Choice(tuple(VARIANTS)))
    context: fields.Optional(fields.Str)
    encrypted: fields.Optional(Encrypted)

    @classmethod
    def new(
        cls, name, password_class=None, counter=None, variant=None, context=None
    ):
        """
        Create a new generated Site, dropping values that equal the defaults.

        Args:
            name (str): the site name.
            password_class (str): the password class or an alias.
            counter (int): the site counter.
            variant (str): the site variant or an alias.
            context (str): extra context for the derivation.

        Returns:
            Site: the new site.
        """
        variant = resolve_variant(variant or 'password')

        if password_class is not None:
            password_class = resolve_class(password_class)
            if password_class == DEFAULT_CLASSES[variant]:
                password_class = None

        return cls(
            name=name,
            password_class=password_class,
            counter=None if counter in (None, 1) else counter,
            variant=None if variant == 'password' else variant,
            context=context or None,
        )

    @property
    def stored(self):
        """
        Whether this site holds an encrypted secret.
        """
        return self.kind == STORED

    @property
    def effective_variant(self):
        return self.variant or 'password'

    @property
    def effective_class(self):
        return self.password_class or DEFAULT_CLASSES[self.effective_variant]

    @property
    def effective_counter(self):
        return 1 if self.counter is None else self.counter

    def check(self):
        """
        Check that the kind of this site agrees with its encrypted secret.

        Raises:
            ConfigMalformed: if a stored site has no secret or a generated
                site has one.
        """
        if self.stored and self.encrypted is None:
            raise ConfigMalformed(f'stored site {self.name!r} has no encrypted secret')

        if not self.stored and self.encrypted is not None:
            raise ConfigMalformed(
                f'got an encrypted secret for generated site {self.name!r}'
            )

    def display(self):
        """
        A display tuple for tabulating this site.

        Returns:
            (str, str, str, int, str): the name, the kind, the password class,
                the counter, and the variant.
        """
        if self.stored:
            return (self.name, STORED, '', '', '')

        return (
            self.name,
            GENERATED,
            self.effective_class,
            self.effective_counter,
            self.effective_variant,
        )


class Config(Model):
    """
    Represents and defines the configuration document for mpw.
    """

    full_name: fields.Optional(fields.Str)
    sites: fields.Optional(fields.List(Site), default=list)

    @classmethod
    def from_dict(cls, d):
        """
        Create a Config object from a dictionary.

        Args:
            d (dict): the input dictionary.

        Returns:
            Config: a new Config object.

        Raises:
            ConfigMalformed: if a site is inconsistent or duplicated.
        """
        config = super().from_dict(d)
        seen = set()

        for site in config.sites:
            site.check()

            if site.name in seen:
                raise ConfigMalformed(f'site {site.name!r} is defined more than once')

            seen.add(site.name)

        return config

    def with_path(self, path):
        """
        Configure this Config with a default path.

        Args:
            path (str): the default path to read and write to.

        Returns:
            Config: this object.
        """
        self._path = path
        return self

    @property
    def path(self):
        """
        Return the configured path if it is set.

        Returns:
            str: the configured path.

        Raises:
            `ConfigurationError`: when there is no configured path.
        """
        try:
            return self._path
        except AttributeError:
            raise ConfigurationError('no default path is configured')

    def save(self, **kwargs):
        """
        Write this Config to the configured path.

        Args:
            **kwargs: extra keyword arguments passed directly to `toml.dumps()`.
        """
        self.to_path(self.path, **kwargs)

    def names(self, pattern=None):
        """
        Return the list of site names.

        This list can be optionally filtered with a regex pattern.

        Args:
            pattern (str): filter names with a regex pattern.

        Returns:
            list: a list of names matching the given pattern.

        Raises:
            SiteError: when the given pattern is an invalid regex expression.
        """
        names = [site.name for site in self.sites]

        if pattern:
            try:
                regex = re.compile(pattern)
            except re.error:
                raise SiteError(f'{pattern!r} is an invalid regex expression')

            names = filter(regex.match, names)

        return list(names)

    def resolve(self, pattern):
        """
        Resolve a pattern to a single site name.

        Args:
            pattern (str): a site name or a regex pattern.

        Returns:
            str: the actual name of the site.

        Raises:
            SiteError: if the pattern does not match any sites or multiple
                sites are matched.
        """
        if self.contains(pattern):
            return pattern

        matches = self.names(pattern=pattern)

        if len(matches) == 1:
            return matches[0]
        elif not matches:
            raise SiteError(f'unable to resolve pattern {pattern!r}')
        else:
            raise SiteError(f'pattern {pattern!r} matches multiple sites')

    def contains(self, name):
        """
        Whether a site with this name exists.

        Args:
            name (str): the site name.

        Returns:
            bool: True if the site exists else False.
        """
        return any(site.name == name for site in self.sites)

    def add(self, site):
        """
        Add a site to the end of the configuration.

        Args:
            site (Site): the site to add.
        """
        if self.contains(site.name):
            raise SiteError(f'{site.name!r} already exists')

        site.check()
        self.sites.append(site)
        logger.debug('added site %r', site.name)

    def get(self, name):
        """
        Retrieve a site.

        Args:
            name (str): the site name.

        Returns:
            Site: the site with this name.
        """
        for site in self.sites:
            if site.name == name:
                return site

        raise SiteError(f'{name!r} does not exist')

    def pop(self, name):
        """
        Remove a site and return the removed site.

        Args:
            name (str): the site name.

        Returns:
            Site: the removed site.
        """
        site = self.get(name)
        self.sites.remove(site)
        logger.debug('removed site %r', name)
        return site

    def remove(self, name):
        """
        Remove a site.

        Args:
            name (str): the site name.
        """
        self.pop(name)

    def update(self, site):
        """
        Replace the site with the same name, keeping its position.

        Args:
            site (Site): the site to update with.
        """
        site.check()

        for i, existing in enumerate(self.sites):
            if existing.name == site.name:
                self.sites[i] = site
                return

        self.add(site)

    def merge(self, other):
        """
        Merge another Config into this one.

        The other full name is preferred when it is set, and its sites are
        appended.

        Args:
            other (Config): the config to merge.

        Raises:
            SiteError: if both configs define the same site.
        """
        for site in other.sites:
            if self.contains(site.name):
                raise SiteError(f'cannot merge: {site.name!r} is defined in both')

        if other.full_name:
            self.full_name = other.full_name

        for site in other.sites:
            self.add(site)


class Session:
    """
    A derivation session for one identity.

    The master key is stretched at most once, on first use, and both the
    master password and the master key are wiped when the session is closed.
    Use a Session as a context manager:

        with Session('John Doe', 'password') as session:
            session.password('github.com')
    """

    def __init__(self, full_name, master_password, version=LATEST):
        """
        Create a new Session.

        Args:
            full_name (str): the user's full name.
            master_password (SecretBuffer, str, bytes): the master password.
                A SecretBuffer is owned by the session from now on.
            version (Version): the algorithm version.
        """
        if not full_name:
            raise ConfigurationError('a full name is required')

        if not isinstance(master_password, SecretBuffer):
            master_password = SecretBuffer(master_password)

        self.full_name = full_name
        self.version = get_version(version)
        self._master_password = master_password
        self._master_key = None
        self._identicon = None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        """
        Wipe the master password and the master key.
        """
        self._master_password.wipe()

        if self._master_key is not None:
            self._master_key.wipe()

    def identicon(self):
        """
        Return the identicon for this session's identity.

        Returns:
            ~mpw.identicon.Identicon: the identicon.
        """
        if self._identicon is None:
            self._identicon = identicon(
                self.full_name, self._master_password, self.version
            )

        return self._identicon

    @property
    def master_key(self):
        """
        Return the master key, stretching it on first access.

        Returns:
            SecretBuffer: the master key.
        """
        if self._master_key is None:
            # The identicon needs the master password, which stretching wipes.
            self.identicon()
            self._master_key = stretch(
                self.full_name, self._master_password, self.version
            )

        return self._master_key

    def password(
        self, site_name, counter=1, password_class=None, variant='password', context=None
    ):
        """
        Generate the password for a site.

        Args:
            site_name (str): the site name.
            counter (int): the site counter.
            password_class (str): the password class, defaults to the
                variant's default class.
            variant (str): one of `password`, `login` or `answer`.
            context (str): extra context, for example a security question
                keyword.

        Returns:
            str: the generated password.
        """
        variant = resolve_variant(variant)
        password_class = resolve_class(password_class or DEFAULT_CLASSES[variant])
        seed = derive_seed(
            self.master_key,
            site_name,
            counter=counter,
            version=self.version,
            purpose=VARIANTS[variant],
            context=context,
        )
        return render(seed, password_class, self.version)

    def secret(self, site):
        """
        Decrypt the secret of a stored site.

        Args:
            site (Site): the stored site.

        Returns:
            SecretBuffer: the decrypted secret.
        """
        if not site.stored:
            raise SiteError(f'{site.name!r} is not a stored site')

        return decrypt(self.master_key, site.name, site.encrypted, self.version)

    def site_password(self, site):
        """
        Retrieve the password for a site entry.

        Generated sites are rendered and stored sites are decrypted.

        Args:
            site (Site): the site.

        Returns:
            str: the password.

        Raises:
            SiteError: if a stored secret is not UTF-8 text.
        """
        if site.stored:
            with self.secret(site) as secret:
                try:
                    return secret.decode()
                except UnicodeDecodeError:
                    raise SiteError(f'the secret for {site.name!r} is not UTF-8 text')

        return self.password(
            site.name,
            counter=site.effective_counter,
            password_class=site.effective_class,
            variant=site.effective_variant,
            context=site.context,
        )

    def seal(self, site_name, secret):
        """
        Create a stored site for a secret.

        Args:
            site_name (str): the site name.
            secret (SecretBuffer, str, bytes): the secret to store. It must be
                UTF-8 text so that it can be retrieved as a password.

        Returns:
            Site: the stored site.

        Raises:
            ValueError: if the secret is empty or not UTF-8 text.
        """
        if not isinstance(secret, str):
            try:
                secret.decode('utf-8')
            except UnicodeDecodeError:
                raise ValueError('the secret must be UTF-8 text')

        sealed = encrypt(self.master_key, site_name, secret, self.version)
        return Site(name=site_name, kind=STORED, encrypted=sealed)
