#!/usr/bin/env python3
import argparse
import logging
import sys
from dataclasses import replace

from getterlib.config import EnvSettings
from getterlib.errors import GetterError
from getterlib.metrics import Metrics
from getterlib.options import (
    with_basic_auth,
    with_insecure_skip_verify_tls,
    with_pass_credentials_all,
    with_tag_version,
    with_timeout,
    with_tls_client_config,
    with_url,
    with_user_agent,
)
from getterlib.registry import all_providers


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch the raw bytes behind an http(s)://, file:// or oci:// locator.")
    parser.add_argument("url", help="Locator to fetch.")
    parser.add_argument("--out", dest="output_path", default=None, help="Write bytes here instead of stdout.")
    parser.add_argument("--username", default=None, help="HTTP Basic username.")
    parser.add_argument("--password", default=None, help="HTTP Basic password.")
    parser.add_argument("--user-agent", default=None, help="User-Agent header to send.")
    parser.add_argument("--cert-file", default="", help="PEM client certificate.")
    parser.add_argument("--key-file", default="", help="PEM client key.")
    parser.add_argument("--ca-file", default="", help="PEM CA bundle to trust instead of the system store.")
    parser.add_argument("--insecure-skip-tls-verify", action="store_true", help="Skip server certificate checks.")
    parser.add_argument("--pass-credentials", action="store_true", help="Keep credentials on cross-host redirects.")
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds (0 for none).")
    parser.add_argument("--version", dest="tag_version", default=None, help="Tag to pull for oci:// locators.")
    parser.add_argument("--enable-oci", action="store_true", help="Register the oci:// scheme.")
    parser.add_argument("--plain-http", action="store_true", help="Talk to OCI registries over plain HTTP.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase logging verbosity.")
    parser.add_argument("--prometheus-port", type=int, default=0, help="Expose fetch metrics on this port (0 to disable).")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    log_level = logging.WARNING
    if args.verbose == 1:
        log_level = logging.INFO
    elif args.verbose >= 2:
        log_level = logging.DEBUG
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(threadName)s %(message)s",
    )

    try:
        settings = EnvSettings.from_env()
    except GetterError as exc:
        logging.error("%s", exc)
        return 1
    if args.enable_oci or args.plain_http:
        settings = replace(settings, enable_oci=True, plain_http=settings.plain_http or args.plain_http)
    metrics = Metrics()
    providers = all_providers(settings, metrics=metrics)

    options = [with_url(args.url)]
    if args.username is not None:
        options.append(with_basic_auth(args.username, args.password or ""))
    if args.user_agent:
        options.append(with_user_agent(args.user_agent))
    if args.cert_file or args.key_file or args.ca_file:
        options.append(with_tls_client_config(args.cert_file, args.key_file, args.ca_file))
    if args.insecure_skip_tls_verify:
        options.append(with_insecure_skip_verify_tls(True))
    if args.pass_credentials:
        options.append(with_pass_credentials_all(True))
    if args.timeout is not None:
        options.append(with_timeout(args.timeout))
    if args.tag_version:
        options.append(with_tag_version(args.tag_version))

    exporter = None
    if args.prometheus_port:
        from getterlib.prometheus_exporter import PrometheusExporter

        exporter = PrometheusExporter(metrics, port=args.prometheus_port)
        exporter.start()
        logging.info("Prometheus metrics available at http://0.0.0.0:%d/metrics", args.prometheus_port)

    try:
        getter = providers.for_url(args.url)
        data = getter.get(args.url, *options).getvalue()
    except GetterError as exc:
        logging.error("%s", exc)
        return 1
    finally:
        if exporter:
            exporter.stop()

    if args.output_path:
        with open(args.output_path, "wb") as fh:
            fh.write(data)
        logging.info("Wrote %d bytes to %s", len(data), args.output_path)
    else:
        sys.stdout.buffer.write(data)
    return 0


if __name__ == "__main__":
    sys.exit(main())
