from django.apps import AppConfig


class BoostsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.boosts"
    label = "boosts"

    def ready(self) -> None:
        from .gateway import PayHeroClient, PayHeroConfig

        # One client per process, built from settings at startup.
        self.gateway = PayHeroClient(PayHeroConfig.from_settings())
