from typing import Dict, Iterable, List, Optional

LABEL_ADDRESS = 'address'
LABEL_CONTRACT = 'contract'
LABEL_FROM = 'from'
LABEL_NAME = 'name'
LABEL_SYMBOL = 'symbol'
LABEL_TO = 'to'
LABEL_TOKEN_ID = 'token_id'

LABEL_DEFAULT_VALUE = ''


class LabelSchema:
    """Label names for one job and the index each name occupies.

    Base labels come first in the order given. Custom label names found in
    the addresses' ``labels`` mappings follow, in the order they are first
    seen. The mapping never changes after construction, so every label
    vector a job produces lines up with the instrument's label names.
    """

    def __init__(self, base_labels: Iterable[str], addresses: Iterable) -> None:
        self.index: Dict[str, int] = {}
        for label in base_labels:
            if label not in self.index:
                self.index[label] = len(self.index)

        for spec in addresses:
            for label in spec.labels or {}:
                if label not in self.index:
                    self.index[label] = len(self.index)

        self.names: List[str] = sorted(self.index, key=self.index.get)

    def __len__(self) -> int:
        return len(self.index)

    def values_for(self, spec, computed: Optional[Dict[str, str]] = None) -> List[str]:
        """Build the label vector for ``spec``.

        A non-empty custom label wins, then the base value taken from the
        address spec or passed in ``computed`` (e.g. a decoded symbol), then
        the empty default.
        """
        base = spec.base_label_values()
        if computed:
            base.update(computed)
        custom = spec.labels or {}

        values = [LABEL_DEFAULT_VALUE] * len(self.index)
        for label, position in self.index.items():
            if custom.get(label):
                values[position] = custom[label]
            else:
                values[position] = base.get(label) or LABEL_DEFAULT_VALUE
        return values
