"""Add-on group aggregate: the catalog that cart add-on selections point into.

Cart lines reference add-ons by group id and option *index*, so the options
are kept as an ordered JSON list rather than as child entities.
"""

import json

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String, Text

from ordering.domain import ordering
from ordering.pricing.calculator import AddOnCatalogEntry, AddOnOption, price_of


@ordering.aggregate
class AddOnGroup:
    name = String(required=True, max_length=150)
    options = Text(default="[]")  # JSON: ordered list of {"name", "price"}

    @invariant.post
    def option_prices_cannot_be_negative(self):
        for option in json.loads(self.options or "[]"):
            if price_of(option.get("price")) < 0:
                raise ValidationError({"options": ["Add-on prices cannot be negative"]})

    @classmethod
    def create(cls, name, options=None):
        normalized = [{"name": option["name"], "price": option.get("price", 0)} for option in (options or [])]
        return cls(name=name, options=json.dumps(normalized))

    def option_list(self):
        return json.loads(self.options or "[]")

    def add_option(self, name, price=0):
        current = self.option_list()
        current.append({"name": name, "price": price})
        self.options = json.dumps(current)

    def to_catalog_entry(self) -> AddOnCatalogEntry:
        return AddOnCatalogEntry(
            id=str(self.id),
            name=self.name,
            options=tuple(AddOnOption(name=o.get("name", ""), price=o.get("price", 0)) for o in self.option_list()),
        )
