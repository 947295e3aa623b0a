"""
Component catalogue.

The eight contracts handled by the external-deployment migration, in registry
order. The first seven are the core; the Chai wrapper is derived from four of
them and is resolved separately.

    Component    artifact   registry   table key          constructor deps
    ─────────    ────────   ────────   ─────────          ────────────────
    VAT          Vat        Vat        vatAddress         -
    WETH         WETH9      Weth       wethAddress        -
    WETH_JOIN    GemJoin    WethJoin   wethJoinAddress    VAT, (ilk), WETH
    DAI          TestDai    Dai        daiAddress         (0)
    DAI_JOIN     DaiJoin    DaiJoin    daiJoinAddress     VAT, DAI
    POT          Pot        Pot        potAddress         VAT
    END          End        End        endAddress         -
    CHAI         Chai       Chai       chaiAddress        VAT, POT, DAI_JOIN, DAI
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from dssdeploy.core import is_present
from dssdeploy.errors import AddressAlreadySet


class Component(Enum):
    """Contracts resolved by the migration, in registry order."""
    VAT = "Vat"
    WETH = "Weth"
    WETH_JOIN = "WethJoin"
    DAI = "Dai"
    DAI_JOIN = "DaiJoin"
    POT = "Pot"
    END = "End"
    CHAI = "Chai"

    @property
    def symbol(self) -> str:
        """Name written to the registry."""
        return self.value

    @property
    def artifact(self) -> str:
        """Contract artifact deployed for this component."""
        return {
            Component.VAT: "Vat",
            Component.WETH: "WETH9",
            Component.WETH_JOIN: "GemJoin",
            Component.DAI: "TestDai",
            Component.DAI_JOIN: "DaiJoin",
            Component.POT: "Pot",
            Component.END: "End",
            Component.CHAI: "Chai",
        }[self]

    @property
    def table_key(self) -> str:
        """Key used in the fixed address table."""
        return self.value[0].lower() + self.value[1:] + "Address"

    @property
    def is_core(self) -> bool:
        return self is not Component.CHAI

    @property
    def dependencies(self) -> Tuple["Component", ...]:
        """Components whose addresses feed this component's constructor."""
        return _DEPENDENCIES[self]


_DEPENDENCIES: Dict[Component, Tuple[Component, ...]] = {
    Component.VAT: (),
    Component.WETH: (),
    Component.WETH_JOIN: (Component.VAT, Component.WETH),
    Component.DAI: (),
    Component.DAI_JOIN: (Component.VAT, Component.DAI),
    Component.POT: (Component.VAT,),
    Component.END: (),
    Component.CHAI: (Component.VAT, Component.POT, Component.DAI_JOIN, Component.DAI),
}

REGISTRY_ORDER: Tuple[Component, ...] = tuple(Component)
CORE_COMPONENTS: Tuple[Component, ...] = tuple(c for c in Component if c.is_core)


@dataclass
class ComponentDescriptor:
    """
    A component and, once known, its address.

    The address is assigned exactly once (at deploy time or from the fixed
    address table) and never changes afterwards.
    """
    component: Component
    dependencies: List[Component] = field(default_factory=list)
    _address: Optional[str] = field(default=None, repr=False)
    deployed: bool = False

    @classmethod
    def for_component(cls, component: Component) -> "ComponentDescriptor":
        return cls(component=component, dependencies=list(component.dependencies))

    @property
    def name(self) -> str:
        return self.component.symbol

    @property
    def address(self) -> Optional[str]:
        return self._address

    @property
    def is_resolved(self) -> bool:
        return is_present(self._address)

    def resolve(self, address: str, deployed: bool = False) -> None:
        """Set the address. A second assignment raises AddressAlreadySet."""
        if self._address is not None:
            raise AddressAlreadySet(self.name, self._address, address)
        self._address = address
        self.deployed = deployed


def new_descriptor_set() -> Dict[Component, ComponentDescriptor]:
    """Fresh, unresolved descriptors for every component, in registry order."""
    return {c: ComponentDescriptor.for_component(c) for c in REGISTRY_ORDER}
