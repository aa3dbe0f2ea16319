from dataclasses import dataclass, field
from typing import Dict, Optional

from .labels import (
    LABEL_ADDRESS, LABEL_CONTRACT, LABEL_FROM, LABEL_NAME, LABEL_TO, LABEL_TOKEN_ID
)


@dataclass(frozen=True)
class AddressSpec:
    """One configured target of a job.

    Which fields are set depends on the job type: ``token_id`` is only used
    by erc1155, ``from_``/``to`` only by the price feeds, and the account job
    has no ``contract``.
    """
    name: str
    address: str = ''
    contract: str = ''
    token_id: Optional[int] = None
    from_: str = ''
    to: str = ''
    labels: Dict[str, str] = field(default_factory=dict)

    def base_label_values(self) -> Dict[str, str]:
        return {
            LABEL_NAME: self.name,
            LABEL_ADDRESS: self.address,
            LABEL_CONTRACT: self.contract,
            LABEL_TOKEN_ID: '' if self.token_id is None else str(self.token_id),
            LABEL_FROM: self.from_,
            LABEL_TO: self.to,
        }
