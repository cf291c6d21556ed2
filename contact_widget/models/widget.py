"""Widget-related Pydantic models"""
from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Dict


class FieldOption(BaseModel):
    """One <option> of a select field"""
    model_config = ConfigDict(frozen=True, extra="allow")

    value: str = ""
    text: str = ""
    disabled: bool = False
    selected: bool = False


class FieldSpec(BaseModel):
    """Declarative description of a single form field"""
    model_config = ConfigDict(frozen=True, extra="allow")

    enabled: bool = False
    required: bool = False
    label: str = ""
    placeholder: str = ""
    # textarea, select and checkbox get their own markup; any other value
    # (text, email, tel, url, date, ...) is used as the input type
    type: str = "text"
    options: List[FieldOption] = []
    rows: Optional[int] = None
    checked: bool = False
    custom_text: Optional[str] = None

    @property
    def display_label(self) -> str:
        return self.custom_text or self.label


class ThemeConfig(BaseModel):
    """Widget theme"""
    model_config = ConfigDict(frozen=True, extra="allow")

    primary_color: str
    border_radius: str
    font_family: str
    max_width: str


class FormConfig(BaseModel):
    """Form-level text and flags"""
    model_config = ConfigDict(frozen=True, extra="allow")

    title: str
    submit_text: str
    success_message: str
    error_message: str
    loading_text: str
    enable_captcha: bool = False
    captcha_site_key: str = ""

    @property
    def captcha_active(self) -> bool:
        return bool(self.enable_captcha and self.captcha_site_key)


class WidgetConfig(BaseModel):
    """Merged widget configuration, immutable once built"""
    model_config = ConfigDict(frozen=True, extra="allow")

    api_url: str
    theme: ThemeConfig
    form: FormConfig
    fields: Dict[str, FieldSpec]

    def enabled_fields(self) -> Dict[str, FieldSpec]:
        """Enabled fields in declaration order"""
        return {key: spec for key, spec in self.fields.items() if spec.enabled}
