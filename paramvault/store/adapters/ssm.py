from __future__ import annotations

import logging
import os
import posixpath
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..contracts import Store
from ..errors import AccessDeniedError, BackendError, NotFoundError
from ..models import LATEST_VERSION, Metadata, ParameterName, RawValue, Value, is_valid_key, join_path

logger = logging.getLogger(__name__)

# Account default KMS alias used by SSM for SecureString parameters.
DEFAULT_KEY_ALIAS = "alias/aws/ssm"

# GetParameters accepts at most this many names per call.
GET_PARAMETERS_BATCH_SIZE = 10

DEFAULT_NUM_RETRIES = 10

_ACCESS_DENIED_CODES = ("AccessDeniedException", "AccessDenied", "UnauthorizedOperation")
_NOT_FOUND_CODES = ("ParameterNotFound", "ParameterVersionNotFound")


@dataclass(frozen=True)
class SSMStoreSettings:
    """Settings for SSMStore.

    Credentials are resolved via boto3's standard credential chain.

    Environment fallbacks (used when the corresponding setting field is empty):
      - region: AWS_REGION then AWS_DEFAULT_REGION

    retries is the transport-level retry budget handed to botocore; nothing
    above the transport is retried.
    """

    region: str = ""
    retries: int = DEFAULT_NUM_RETRIES
    key_alias: str = DEFAULT_KEY_ALIAS


def _error_code(e: ClientError) -> str:
    return str(e.response.get("Error", {}).get("Code", "") or "")


def _parse_version(description: Optional[str]) -> int:
    try:
        return int(str(description or "").strip())
    except ValueError:
        return 0


def _to_metadata(p: Dict[str, Any]) -> Metadata:
    description = str(p.get("Description", "") or "")
    return Metadata(
        key=str(p.get("Name", "") or ""),
        description=description,
        secure=p.get("Type") == "SecureString",
        version=_parse_version(description),
        last_modified_date=p.get("LastModifiedDate"),
        last_modified_user=str(p.get("LastModifiedUser", "") or ""),
    )


class SSMStore(Store):
    """Store backed by AWS Systems Manager Parameter Store.

    SSM has no caller-controlled version numbers, so every write stores its
    version in the parameter's free-text Description. Reads parse it back:
    latest metadata comes from a DescribeParameters listing of the parent
    path, older versions from GetParameterHistory.
    """

    def __init__(self, *, settings: Optional[SSMStoreSettings] = None, client: Any = None):
        self.settings = settings or SSMStoreSettings()
        self._svc = client

    def _region(self) -> str:
        region = str(self.settings.region or "").strip()
        if not region:
            region = str(os.environ.get("AWS_REGION", "") or os.environ.get("AWS_DEFAULT_REGION", "") or "").strip()
        return region

    def _client(self):
        if self._svc is not None:
            return self._svc

        import boto3

        config = self._config()
        region = self._region()
        if region:
            self._svc = boto3.client("ssm", region_name=region, config=config)
        else:
            self._svc = boto3.client("ssm", config=config)
        return self._svc

    def _config(self):
        from botocore.config import Config

        return Config(retries={"max_attempts": max(0, int(self.settings.retries)), "mode": "standard"})

    def _key_alias(self) -> str:
        return str(self.settings.key_alias or "").strip() or DEFAULT_KEY_ALIAS

    def _backend_error(self, op: str, target: str, e: Exception) -> Exception:
        if isinstance(e, ClientError):
            code = _error_code(e)
            if code in _ACCESS_DENIED_CODES:
                return AccessDeniedError(f"SSM {op} denied: {target} ({e})")
        return BackendError(f"SSM {op} failed: {target} ({e})")

    def _paginate(self, op: str, target: str, **kwargs: Any) -> Iterator[Dict[str, Any]]:
        try:
            paginator = self._client().get_paginator(op)
            for page in paginator.paginate(**kwargs):
                yield page
        except (ClientError, BotoCoreError) as e:
            raise self._backend_error(op, target, e) from e

    def put(self, name: ParameterName, value: Value) -> None:
        key = name.key
        version = 1
        try:
            current = self.get(name, LATEST_VERSION)
            version = current.meta.version + 1
        except NotFoundError:
            pass

        params: Dict[str, Any] = {
            "Name": key,
            "Type": "String",
            "Value": str(value.value or ""),
            "Overwrite": True,
            "Description": str(version),
        }
        if value.meta.secure:
            params["Type"] = "SecureString"
            params["KeyId"] = self._key_alias()

        logger.debug("ssm put %s version=%d secure=%s", key, version, value.meta.secure)
        try:
            self._client().put_parameter(**params)
        except (ClientError, BotoCoreError) as e:
            raise self._backend_error("put_parameter", key, e) from e

    def get(self, name: ParameterName, version: int = LATEST_VERSION) -> Value:
        if version == LATEST_VERSION:
            return self._get_latest(name)
        return self._get_version(name, version)

    def _get_latest(self, name: ParameterName) -> Value:
        key = name.key
        try:
            resp = self._client().get_parameters(Names=[key], WithDecryption=True)
        except (ClientError, BotoCoreError) as e:
            raise self._backend_error("get_parameters", key, e) from e

        params = resp.get("Parameters") or []
        if not params:
            raise NotFoundError(f"Configuration not found: {key}")
        current = params[0]

        # DescribeParameters cannot target a single path-style key, so list
        # the siblings one level under the parent and pick the exact match.
        meta: Optional[Metadata] = None
        filters = [{"Key": "Path", "Option": "OneLevel", "Values": [posixpath.dirname(key)]}]
        for page in self._paginate("describe_parameters", key, ParameterFilters=filters):
            for p in page.get("Parameters") or []:
                if p.get("Name") == key:
                    meta = _to_metadata(p)
                    break
            if meta is not None:
                break

        if meta is None:
            raise NotFoundError(f"Configuration not found: {key}")
        return Value(value=current.get("Value"), meta=meta)

    def _get_version(self, name: ParameterName, version: int) -> Value:
        key = name.key
        try:
            for page in self._paginate("get_parameter_history", key, Name=key, WithDecryption=True):
                for h in page.get("Parameters") or []:
                    if _parse_version(h.get("Description")) != version:
                        continue
                    if not h.get("Value"):
                        raise NotFoundError(f"Configuration not found: {key} (version {version})")
                    return Value(value=h.get("Value"), meta=_to_metadata(h))
        except BackendError as e:
            cause = e.__cause__
            if isinstance(cause, ClientError) and _error_code(cause) in _NOT_FOUND_CODES:
                raise NotFoundError(f"Configuration not found: {key}") from cause
            raise
        raise NotFoundError(f"Configuration not found: {key} (version {version})")

    def list(self, prefix: str, include_values: bool = False) -> List[Value]:
        path = join_path(prefix)
        filters = [{"Key": "Path", "Option": "Recursive", "Values": [path]}]

        metas: Dict[str, Metadata] = {}
        for page in self._paginate("describe_parameters", path, ParameterFilters=filters):
            for p in page.get("Parameters") or []:
                name = str(p.get("Name", "") or "")
                if not is_valid_key(name):
                    continue
                metas[name] = _to_metadata(p)

        values: Dict[str, Optional[str]] = {}
        if include_values:
            keys = list(metas.keys())
            for i in range(0, len(keys), GET_PARAMETERS_BATCH_SIZE):
                batch = keys[i : i + GET_PARAMETERS_BATCH_SIZE]
                try:
                    resp = self._client().get_parameters(Names=batch, WithDecryption=True)
                except (ClientError, BotoCoreError) as e:
                    raise self._backend_error("get_parameters", path, e) from e
                for p in resp.get("Parameters") or []:
                    values[str(p.get("Name"))] = p.get("Value")

        return [Value(value=values.get(k), meta=m) for k, m in metas.items()]

    def list_raw(self, prefix: str) -> List[RawValue]:
        path = join_path(prefix)
        out: Dict[str, RawValue] = {}
        for page in self._paginate(
            "get_parameters_by_path",
            path,
            Path=path,
            Recursive=True,
            WithDecryption=True,
        ):
            for p in page.get("Parameters") or []:
                name = str(p.get("Name", "") or "")
                if not is_valid_key(name):
                    continue
                out[name] = RawValue(key=name, value=str(p.get("Value", "") or ""))
        logger.debug("ssm list_raw %s -> %d parameters", path, len(out))
        return list(out.values())

    def delete(self, name: ParameterName) -> None:
        key = name.key
        # Surfaces NotFoundError for missing keys.
        self.get(name, LATEST_VERSION)
        try:
            self._client().delete_parameter(Name=key)
        except (ClientError, BotoCoreError) as e:
            raise self._backend_error("delete_parameter", key, e) from e

    def describe(self) -> Dict[str, Any]:
        return {
            "class": self.__class__.__name__,
            "backend": "ssm",
            "region": self._region(),
            "retries": int(self.settings.retries),
            "key_alias": self._key_alias(),
        }
