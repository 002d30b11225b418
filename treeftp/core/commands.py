from enum import Enum
from typing import NamedTuple, Optional


class Verb(str, Enum):
    USER = "USER"
    PASS = "PASS"
    SYST = "SYST"
    FEAT = "FEAT"
    PWD = "PWD"
    TYPE = "TYPE"
    PASV = "PASV"
    EPSV = "EPSV"
    LIST = "LIST"
    CWD = "CWD"
    CDUP = "CDUP"


# Verbs that are sent with a single argument
ARGUMENT_VERBS = {Verb.USER, Verb.PASS, Verb.TYPE, Verb.CWD}


class Command(NamedTuple):
    """A single control connection command and its optional argument."""
    verb: Verb
    argument: Optional[str] = None

    def validate(self):
        if self.verb in ARGUMENT_VERBS:
            if self.argument is None:
                raise ValueError(f"{self.verb.value} requires an argument")
            if '\r' in self.argument or '\n' in self.argument:
                raise ValueError(f"{self.verb.value} argument contains a line break")
        elif self.argument is not None:
            raise ValueError(f"{self.verb.value} takes no argument")
        return self

    def to_wire(self) -> bytes:
        self.validate()
        if self.argument is None:
            return f"{self.verb.value}\r\n".encode('utf-8', errors='surrogateescape')
        return f"{self.verb.value} {self.argument}\r\n".encode('utf-8', errors='surrogateescape')

    def __str__(self):
        if self.argument is None:
            return self.verb.value
        if self.verb is Verb.PASS:
            return f"{self.verb.value} ****"
        return f"{self.verb.value} {self.argument}"


def user(username: str) -> Command:
    return Command(Verb.USER, username)


def password(secret: str) -> Command:
    return Command(Verb.PASS, secret)


def transfer_type(code: str = "I") -> Command:
    return Command(Verb.TYPE, code)


def cwd(path: str) -> Command:
    return Command(Verb.CWD, path)


SYST = Command(Verb.SYST)
FEAT = Command(Verb.FEAT)
PWD = Command(Verb.PWD)
PASV = Command(Verb.PASV)
EPSV = Command(Verb.EPSV)
LIST = Command(Verb.LIST)
CDUP = Command(Verb.CDUP)
