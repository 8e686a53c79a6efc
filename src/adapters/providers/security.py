"""Cell security: file registry users and groups, J2C aliases, JAAS, TAI, global security."""

from __future__ import annotations

import logging
import re
from typing import Any

from adapters.providers.base import BaseProvider
from adapters.was_xml import ConfigDocument, xor_decode
from core.domain.errors import ProviderError, WsadminError
from core.domain.resources.security import (
    AuthAlias,
    GlobalSecurity,
    Group,
    Interceptor,
    JaasLogin,
    TrustAssociation,
    User,
)
from core.services.insync import array_insync, as_text, hash_insync


logger = logging.getLogger(__name__)

_MEMBER_NAME = re.compile(r"^(?:uid|cn)=([^,]+),")


def _wim_text(doc: ConfigDocument, entity: Any, field: str) -> str | None:
    return doc.text("*[local-name()=$field]", entity, field=field)


class UserProvider(BaseProvider):
    resource_type = User
    label = "user"

    resource: User

    def discover(self) -> dict[str, Any] | None:
        doc = self.read_config()
        if doc is None:
            return None
        entity = doc.first("//*[*[local-name()='uid'][text()=$uid]]", uid=self.resource.userid)
        if entity is None:
            return None
        return {
            "common_name": _wim_text(doc, entity, "cn"),
            "surname": _wim_text(doc, entity, "sn"),
            "mail": _wim_text(doc, entity, "mail"),
        }

    def password_matches(self) -> bool:
        """Ask the SecurityAdmin MBean; slow (one wsadmin start per user)."""

        script = self.render("user", action="check_password", resource=self.resource, params={})
        try:
            self.runner.run_script(script, self.target)
        except WsadminError:
            return False
        return True

    def get(self, prop: str) -> Any:
        if prop == "password":
            if not self.resource.manage_password:
                return self.resource.password
            return self.resource.password if self.password_matches() else None
        return super().get(prop)

    def _params(self, props: list[str]) -> dict[str, Any]:
        names = {"common_name": "cn", "surname": "sn", "mail": "mail", "password": "password"}
        return {names[p]: getattr(self.resource, p) for p in props if getattr(self.resource, p) is not None}

    def create(self) -> None:
        logger.info("Creating %s", self.resource.identity())
        params = {"uid": self.resource.userid, **self._params(["password", "common_name", "surname", "mail"])}
        self.run(self.render("user", action="create", resource=self.resource, params=params), creating=True)

    def modify(self) -> None:
        params = self._params(list(self.property_flush))
        self.run(self.render("user", action="modify", resource=self.resource, params=params))

    def destroy(self) -> None:
        logger.info("Removing %s", self.resource.identity())
        self.run(self.render("user", action="delete", resource=self.resource, params={}))


class GroupProvider(BaseProvider):
    resource_type = Group
    label = "group"

    resource: Group

    def discover(self) -> dict[str, Any] | None:
        doc = self.read_config()
        if doc is None:
            return None
        entity = doc.first(
            "//*[local-name()='entities'][@*[local-name()='type']='wim:Group'][*[local-name()='cn'][text()=$cn]]",
            cn=self.resource.groupid,
        )
        if entity is None:
            return None
        members = []
        for unique_name in doc.xpath(
            "*[local-name()='members']/*[local-name()='identifier']/@uniqueName", entity
        ):
            found = _MEMBER_NAME.match(str(unique_name))
            if found:
                members.append(found.group(1))
        return {
            "description": _wim_text(doc, entity, "description"),
            "members": members,
        }

    def insync(self, prop: str) -> bool:
        if prop != "members":
            return super().insync(prop)
        current = self.get("members") or []
        if self.resource.enforce_members:
            return array_insync(current, self.resource.members)
        return set(self.resource.members) <= set(current)

    def _script(self, action: str, params: dict[str, Any], add: list[str], remove: list[str]) -> str:
        return self.render(
            "group",
            action=action,
            resource=self.resource,
            params=params,
            add_members=add,
            remove_members=remove,
        )

    def create(self) -> None:
        logger.info("Creating %s", self.resource.identity())
        params: dict[str, Any] = {"cn": self.resource.groupid}
        if self.resource.description is not None:
            params["description"] = self.resource.description
        self.run(self._script("create", params, list(self.resource.members), []), creating=True)

    def modify(self) -> None:
        params: dict[str, Any] = {}
        if "description" in self.property_flush:
            params["description"] = self.resource.description
        add: list[str] = []
        remove: list[str] = []
        if "members" in self.property_flush:
            current = set(self.get("members") or [])
            add = [m for m in self.resource.members if m not in current]
            if self.resource.enforce_members:
                remove = sorted(current - set(self.resource.members))
        self.run(self._script("modify", params, add, remove))

    def destroy(self) -> None:
        logger.info("Removing %s", self.resource.identity())
        self.run(self._script("delete", {}, [], []))


class AuthAliasProvider(BaseProvider):
    resource_type = AuthAlias
    label = "J2C authentication data entry"

    resource: AuthAlias

    def discover(self) -> dict[str, Any] | None:
        doc = self.read_config()
        if doc is None:
            return None
        entry = doc.first("/*/authDataEntries[@alias=$alias]", alias=self.resource.aliasid)
        if entry is None:
            return None
        return {
            "userid": entry.get("userId"),
            "password": xor_decode(entry.get("password")),
            "description": entry.get("description"),
        }

    def get(self, prop: str) -> Any:
        if prop == "password" and not self.resource.manage_password:
            return self.resource.password
        return super().get(prop)

    def _params(self, props: list[str]) -> dict[str, Any]:
        names = {"userid": "user", "password": "password", "description": "description"}
        return {names[p]: getattr(self.resource, p) for p in props if getattr(self.resource, p) is not None}

    def create(self) -> None:
        logger.info("Creating %s", self.resource.identity())
        params = self._params(["userid", "password", "description"])
        self.run(self.render("authalias", action="create", resource=self.resource, params=params), creating=True)

    def modify(self) -> None:
        params = self._params(list(self.property_flush))
        self.run(self.render("authalias", action="modify", resource=self.resource, params=params))

    def destroy(self) -> None:
        logger.info("Removing %s", self.resource.identity())
        self.run(self.render("authalias", action="delete", resource=self.resource, params={}))


class JaasLoginProvider(BaseProvider):
    resource_type = JaasLogin
    label = "JAAS Login alias"

    resource: JaasLogin

    def discover(self) -> dict[str, Any] | None:
        doc = self.read_config()
        if doc is None:
            return None
        entry = doc.first(
            f"/*/{self.resource.login_type.value}LoginConfig/entries[@alias=$alias]",
            alias=self.resource.jaas_login,
        )
        if entry is None:
            return None
        modules: dict[str, dict[str, Any]] = {}
        for ordinal, module in enumerate(doc.xpath("loginModules", entry), start=1):
            options = {opt.get("name"): opt.get("value", "") for opt in doc.xpath("options", module)}
            modules[module.get("moduleClassName", "")] = {
                "ordinal": ordinal,
                "authentication_strategy": module.get("authenticationStrategy", ""),
                "custom_properties": options,
            }
        return {"login_modules": modules}

    def insync(self, prop: str) -> bool:
        if prop != "login_modules":
            return super().insync(prop)
        current: dict[str, dict[str, Any]] = self.get("login_modules") or {}
        desired = self.resource.login_modules or {}
        ordered_current = sorted(current, key=lambda name: current[name]["ordinal"])
        if ordered_current != self.resource.ordered_modules():
            return False
        for name, settings in desired.items():
            if as_text(current[name]["authentication_strategy"]) != as_text(settings["authentication_strategy"]):
                return False
            wanted = settings.get("custom_properties")
            if wanted is not None and not hash_insync(current[name]["custom_properties"], wanted):
                return False
        return True

    def _script(self, action: str) -> str:
        desired = self.resource.login_modules or {}
        current: dict[str, dict[str, Any]] = self.get("login_modules") or {}
        ordered = self.resource.ordered_modules()
        custom: dict[str, str] = {}
        for name in ordered:
            wanted = desired[name].get("custom_properties")
            if wanted is None:
                continue
            props = {str(k): as_text(v) for k, v in wanted.items()}
            # Properties that are no longer declared are blanked.
            for stale in current.get(name, {}).get("custom_properties", {}):
                props.setdefault(stale, "")
            custom[name] = ",".join(f"{k}={v}" for k, v in props.items())
        return self.render(
            "jaaslogin",
            action=action,
            resource=self.resource,
            modules=ordered,
            strategies=[as_text(desired[name]["authentication_strategy"]) for name in ordered],
            custom_properties=custom,
            remove_modules=[name for name in current if name not in desired],
        )

    def create(self) -> None:
        logger.info("Creating %s", self.resource.identity())
        self.run(self._script("create"), creating=True)

    def modify(self) -> None:
        self.run(self._script("modify"))

    def destroy(self) -> None:
        logger.info("Removing %s", self.resource.identity())
        self.run(self._script("delete"))


def _ltpa_mechanism(doc: ConfigDocument, is_global: bool) -> Any:
    if is_global:
        found = doc.first("/*/authMechanisms[@xmi:id=/*/@activeAuthMechanism]")
        if found is not None:
            return found
    return doc.first("/*/authMechanisms[@xmi:type='security:LTPA']")


class TrustAssociationProvider(BaseProvider):
    resource_type = TrustAssociation
    label = "Trust Association"

    resource: TrustAssociation

    def discover(self) -> dict[str, Any] | None:
        doc = self.read_config()
        if doc is None:
            return None
        mechanism = _ltpa_mechanism(doc, self.resource.is_global)
        tai = doc.first("trustAssociation", mechanism) if mechanism is not None else None
        if tai is None:
            return None
        return {"enabled": tai.get("enabled", "false")}

    def create(self) -> None:
        logger.info("Configuring %s", self.resource.identity())
        self.run(self.render("trustassociation", action="create", resource=self.resource), creating=True)

    def modify(self) -> None:
        self.run(self.render("trustassociation", action="modify", resource=self.resource))

    def destroy(self) -> None:
        if self.resource.is_global:
            raise ProviderError(
                "Refusing to destroy the built-in Trust Association for the Global Security domain. "
                "Set `enabled: false` instead."
            )
        logger.info("Removing %s", self.resource.identity())
        self.run(self.render("trustassociation", action="delete", resource=self.resource))


class InterceptorProvider(BaseProvider):
    resource_type = Interceptor
    label = "Interceptor"

    resource: Interceptor

    def discover(self) -> dict[str, Any] | None:
        doc = self.read_config()
        if doc is None:
            return None
        mechanism = _ltpa_mechanism(doc, self.resource.is_global)
        if mechanism is None:
            return None
        entry = doc.first(
            "trustAssociation/interceptors[@interceptorClassName=$cls]",
            mechanism,
            cls=self.resource.interceptor_classname,
        )
        if entry is None:
            return None
        props = {p.get("name"): p.get("value", "") for p in doc.xpath("trustProperties", entry)}
        return {"trust_properties": props}

    def _script(self, action: str) -> str:
        props = self.resource.trust_properties or {}
        return self.render(
            "interceptor",
            action=action,
            resource=self.resource,
            custom_properties=",".join(f"{k}={as_text(v)}" for k, v in props.items()),
        )

    def create(self) -> None:
        logger.info("Creating %s", self.resource.identity())
        self.run(self._script("create"), creating=True)

    def modify(self) -> None:
        self.run(self._script("modify"))

    def destroy(self) -> None:
        logger.info("Removing %s", self.resource.identity())
        self.run(self._script("delete"))


class GlobalSecurityProvider(BaseProvider):
    resource_type = GlobalSecurity
    label = "Global Security"

    resource: GlobalSecurity

    def discover(self) -> dict[str, Any] | None:
        doc = self.read_config()
        if doc is None:
            return None
        return {"appsecurity": doc.root.get("appEnabled", "false")}

    def create(self) -> None:
        raise ProviderError("Global Security Domain does not exist. Refusing to create it.")

    def destroy(self) -> None:
        raise ProviderError(
            "Refusing to destroy the default Global Security domain. You can only set properties on or off in it."
        )

    def modify(self) -> None:
        self.run(self.render("globalsecurity", resource=self.resource))
