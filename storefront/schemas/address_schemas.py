from pydantic import AliasChoices, BaseModel, Field


class AddressCreate(BaseModel):
    label: str = "Home"
    name: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    pincode: str = Field(default="", validation_alias=AliasChoices("pincode", "postalCode"))
    country: str = ""
    is_default: bool = Field(default=False, validation_alias=AliasChoices("isDefault", "is_default"))
