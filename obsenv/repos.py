"""
The repository registry: the closed set of repositories that make up an
observing environment.

Registry order is definition order, and every batch operation walks the
repositories in that order.
"""

from enum import Enum
from typing import List

from .domain import RepositoryIdentity
from .exit_codes import UnknownRepositoryError

LSST_TS = "https://github.com/lsst-ts"
LSST_SITCOM = "https://github.com/lsst-sitcom"


def _identity(name: str, org_url: str = LSST_TS) -> RepositoryIdentity:
    return RepositoryIdentity(name=name, remote=f"{org_url}/{name}.git")


class Repos(Enum):
    """Repositories managed in the observing environment."""
    TS_XML = _identity("ts_xml")
    TS_IDL = _identity("ts_idl")
    TS_UTILS = _identity("ts_utils")
    TS_SALOBJ = _identity("ts_salobj")
    TS_OBSERVATORY_CONTROL = _identity("ts_observatory_control")
    TS_STANDARDSCRIPTS = _identity("ts_standardscripts")
    TS_EXTERNALSCRIPTS = _identity("ts_externalscripts")
    TS_CONFIG_ATTCS = _identity("ts_config_attcs")
    TS_CONFIG_MTTCS = _identity("ts_config_mttcs")
    TS_CONFIG_OCS = _identity("ts_config_ocs")
    TS_WEP = _identity("ts_wep")
    SUMMIT_UTILS = _identity("summit_utils", LSST_SITCOM)
    SUMMIT_EXTRAS = _identity("summit_extras", LSST_SITCOM)

    @property
    def identity(self) -> RepositoryIdentity:
        return self.value

    @property
    def repo_name(self) -> str:
        return self.value.name

    @classmethod
    def from_name(cls, name: str) -> 'Repos':
        """Look up a registry member by its canonical repository name."""
        for member in cls:
            if member.value.name == name:
                return member
        raise UnknownRepositoryError(name)

    @classmethod
    def names(cls) -> List[str]:
        return [member.value.name for member in cls]

    @classmethod
    def identities(cls) -> List[RepositoryIdentity]:
        return [member.value for member in cls]
