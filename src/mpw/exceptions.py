"""
Errors used in mpw.
"""


class MpwError(Exception):
    """
    A base error class.
    """

    def __init__(self, message):
        """
        Create a new MpwError.

        Args:
            message (str): the error message.
        """
        super().__init__(message)

    @property
    def message(self):
        """
        Return the error message.
        """
        return self.args[0]

    def __str__(self):
        """
        Return a string representation of this MpwError.
        """
        return self.message

    def __repr__(self):
        """
        Return the canonical string representation of this MpwError.
        """
        return (
            f'{self.__class__.__module__}.{self.__class__.__name__}({self.message!r})'
        )


class UnsupportedVersion(MpwError):
    """
    Raised when an algorithm version has no defined parameters.
    """

    def __init__(self, message, version=None):
        """
        Create a new UnsupportedVersion error.

        Args:
            message (str): the error message.
            version: the requested version.
        """
        super().__init__(message)
        self.version = version

    def __repr__(self):
        """
        Return the canonical string representation of this UnsupportedVersion.
        """
        return (
            f'{self.__class__.__module__}.{self.__class__.__name__}'
            f'({self.message!r}, version={self.version!r})'
        )


class UnsupportedClass(MpwError):
    """
    Raised when a password class has no templates.
    """


class UnsupportedVariant(MpwError):
    """
    Raised when a site variant is not known.
    """


class AuthenticationFailed(MpwError):
    """
    Raised when a stored secret fails to authenticate.

    This means either the master password is wrong or the entry was corrupted.
    """


class ConfigurationError(MpwError):
    """
    An error related to the mpw configuration.
    """


class ConfigMalformed(ConfigurationError):
    """
    Raised when a configuration document cannot be parsed or validated.
    """


class SiteError(MpwError):
    """
    An error related to site entries.
    """


class CounterError(MpwError, ValueError):
    """
    Raised when a site counter is outside of the unsigned 32 bit range.
    """


class SeedTooShort(MpwError):
    """
    Raised when a template needs more seed bytes than are available.

    This indicates broken template tables, it is never a user error.
    """
