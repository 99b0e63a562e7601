#!/usr/bin/env python3
"""
Domain Seeds (bulk HTTPS liveness check)
----------------------------------------
Turn a list of bare domain names into one canonical seed URL each.

Features
- Resolves A records against a pool of public resolvers (random pick per
  attempt, linear backoff, 5 attempts)
- Verifies HTTPS by completing a TLS handshake against each resolved
  address in turn, SNI set to the domain
- Falls back bare domain -> www. domain -> plain http:// guess, so every
  input produces exactly one output line
- Skips domains whose CNAME points at a known parking provider
- Fixed pool of async workers fed through a bounded queue

Usage
------
python domain_seeds.py domains.txt > seeds.txt
python domain_seeds.py domains.txt --concurrency 50 --debug 2> debug.log

Notes
-----
- Reading stops at the first blank line.
- Output order follows completion, not input order.
"""
import argparse
import asyncio
import random
import ssl
import sys
from typing import Iterable, List, NamedTuple, Optional

import async_timeout
import dns.asyncquery
import dns.exception
import dns.message
import dns.rdatatype

# --------- Defaults (can be overridden via CLI) ----------
DEFAULT_CONCURRENCY = 10

# DNS behavior
RESOLVER_RETRIES = 5
BACKOFF_STEP = 0.1        # sleep BACKOFF_STEP * attempt after a failed attempt
DNS_TIMEOUT = 2.0         # per attempt
DNS_PORT = 53

# TLS behavior
TLS_PORT = 443
TLS_TIMEOUT = 10.0

RESOLVERS = [
    # Google
    "8.8.8.8",
    "8.8.4.4",
    # Cloudflare
    "1.1.1.1",
    "1.0.0.1",
    # Quad9
    "9.9.9.9",
    "149.112.112.112",
    # OpenDNS
    "208.67.222.222",
    "208.67.220.220",
]

PARKING_PATTERNS = (
    "park",
    "namecheap",
    "namebright",
    "hdredirect",
)
# ---------------------------------------------------------

# ---------------------------
# Failures
# ---------------------------

class ProbeError(Exception):
    """Why one step of the fallback chain did not verify a domain."""

    def __init__(self, domain: str, message: str):
        super().__init__(message)
        self.domain = domain


class ResolutionTimeout(ProbeError):
    def __init__(self, domain: str, servers: List[str]):
        super().__init__(
            domain,
            f"failed to resolve after {len(servers)} retries on {servers}",
        )
        self.servers = list(servers)


class EmptyAnswer(ProbeError):
    def __init__(self, domain: str):
        super().__init__(domain, "empty answer")


class NoAddressRecord(ProbeError):
    def __init__(self, domain: str):
        super().__init__(domain, "no A record in answer")


class ParkedDomain(ProbeError):
    def __init__(self, domain: str, target: str):
        super().__init__(domain, f"seems parked at cname {target}")
        self.target = target


class InvalidName(ProbeError):
    def __init__(self, domain: str, error):
        super().__init__(domain, f"invalid name: {error}")
        self.error = error


class HandshakeFailure(ProbeError):
    def __init__(self, domain: str, address: Optional[str], error):
        detail = str(error) or type(error).__name__
        super().__init__(domain, f"on {address}: {detail}")
        self.address = address
        self.error = error


class Resolution(NamedTuple):
    domain: str
    addresses: List[str]
    error: Optional[ProbeError] = None

    def __bool__(self):
        return self.error is None


class ResultLine(NamedTuple):
    domain: str
    url: str
    scheme: str


def report(debug, domain: str, what):
    """Write one diagnostic line; debug is a text stream or None."""
    if debug is not None:
        print(f"{domain}: {what}", file=debug)

# ---------------------------
# Resolver
# ---------------------------

def is_parked(target: str, patterns=PARKING_PATTERNS) -> bool:
    target = target.lower()
    return any(p in target for p in patterns)


class Resolver:
    """A-record lookups against a random pick from a fixed server pool.

    ``choose``, ``query`` and ``sleep`` are injectable so tests can script
    which servers answer without touching the network.
    """

    def __init__(
        self,
        servers: Optional[List[str]] = None,
        *,
        retries: int = RESOLVER_RETRIES,
        timeout: float = DNS_TIMEOUT,
        backoff: float = BACKOFF_STEP,
        parking_patterns=PARKING_PATTERNS,
        choose=random.choice,
        query=dns.asyncquery.udp,
        sleep=asyncio.sleep,
    ):
        self.servers = list(servers if servers is not None else RESOLVERS)
        if not self.servers:
            raise ValueError("resolver pool is empty")
        self.retries = retries
        self.timeout = timeout
        self.backoff = backoff
        self.parking_patterns = tuple(parking_patterns)
        self.choose = choose
        self.query = query
        self.sleep = sleep

    async def exchange(self, q):
        """Send the question until some server replies.

        Returns ``(reply, servers_tried)``; ``reply`` is None when every
        attempt failed at the transport level.
        """
        tried = []
        for attempt in range(1, self.retries + 1):
            server = self.choose(self.servers)
            tried.append(server)
            try:
                reply = await self.query(q, server, timeout=self.timeout, port=DNS_PORT)
                return reply, tried
            except (dns.exception.DNSException, OSError):
                if attempt < self.retries:
                    await self.sleep(self.backoff * attempt)
        return None, tried

    async def resolve(self, domain: str) -> Resolution:
        try:
            q = dns.message.make_query(domain + ".", dns.rdatatype.A)
        except (dns.exception.DNSException, ValueError) as e:
            # empty or over-long labels, names past 255 octets, bad IDNA
            return Resolution(domain, [], InvalidName(domain, e))
        reply, tried = await self.exchange(q)
        if reply is None:
            return Resolution(domain, [], ResolutionTimeout(domain, tried))
        if not reply.answer:
            return Resolution(domain, [], EmptyAnswer(domain))

        addresses = []
        for rrset in reply.answer:
            if rrset.rdtype == dns.rdatatype.A:
                addresses.extend(rd.address for rd in rrset)
            elif rrset.rdtype == dns.rdatatype.CNAME:
                for rd in rrset:
                    target = rd.target.to_text()
                    if is_parked(target, self.parking_patterns):
                        return Resolution(domain, [], ParkedDomain(domain, target))
        if not addresses:
            return Resolution(domain, [], NoAddressRecord(domain))
        return Resolution(domain, addresses)

# ---------------------------
# TLS prober
# ---------------------------

class Dialer:
    """Per-worker TLS connection settings."""

    def __init__(self, port: int = TLS_PORT, timeout: float = TLS_TIMEOUT, ssl_context=None):
        self.port = port
        self.timeout = timeout
        self.ssl_context = ssl_context or ssl.create_default_context()

    async def handshake(self, domain: str, address: str):
        """Open a TLS connection to address with SNI set to domain.

        Returns the stream writer; the caller closes it. The address is a
        literal IPv4 so there is nothing to race.
        """
        async with async_timeout.timeout(self.timeout):
            _, writer = await asyncio.open_connection(
                address,
                self.port,
                ssl=self.ssl_context,
                server_hostname=domain,
            )
        return writer


async def close_quietly(writer, domain: str, debug=None, timeout: float = TLS_TIMEOUT):
    # the handshake already succeeded; a close error does not change that
    writer.close()
    try:
        async with async_timeout.timeout(timeout):
            await writer.wait_closed()
    except asyncio.TimeoutError:
        # peer never sent close_notify
        writer.transport.abort()
        report(debug, domain, "error on close: timed out, connection aborted")
    except OSError as e:
        report(debug, domain, f"error on close: {e}")


async def probe_tls(dialer, domain: str, addresses: List[str], debug=None) -> Optional[HandshakeFailure]:
    """Try addresses in order; None on the first handshake, else the last failure."""
    failure = HandshakeFailure(domain, None, "no addresses to probe")
    for i, address in enumerate(addresses):
        try:
            writer = await dialer.handshake(domain, address)
        except (OSError, asyncio.TimeoutError, ValueError) as e:
            # ValueError: ssl rejects the server_hostname
            failure = HandshakeFailure(domain, address, e)
            if i < len(addresses) - 1:
                report(debug, domain, failure)
            continue
        await close_quietly(writer, domain, debug, dialer.timeout)
        return None
    return failure

# ---------------------------
# Fallback chain
# ---------------------------

async def verify_https(resolver, dialer, host: str, debug=None) -> bool:
    resolution = await resolver.resolve(host)
    if not resolution:
        report(debug, host, resolution.error)
        return False
    failure = await probe_tls(dialer, host, resolution.addresses, debug)
    if failure is not None:
        report(debug, host, failure)
        return False
    return True


async def classify(domain: str, resolver, dialer, debug=None) -> ResultLine:
    if await verify_https(resolver, dialer, domain, debug):
        return ResultLine(domain, f"https://{domain}/", "https")
    www = "www." + domain
    if await verify_https(resolver, dialer, www, debug):
        return ResultLine(domain, f"https://{www}/", "https")
    return degraded(domain)


def degraded(domain: str) -> ResultLine:
    return ResultLine(domain, f"http://{domain}/", "http")

# ---------------------------
# Worker pool
# ---------------------------

_END = object()


async def run(
    domains: Iterable[str],
    concurrency: int = DEFAULT_CONCURRENCY,
    *,
    resolver=None,
    dialer_factory=Dialer,
    out=None,
    debug=None,
) -> int:
    """Classify every domain with a fixed pool of workers.

    Writes one URL per domain to ``out`` (stdout by default) and returns how
    many lines were written.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be positive, got {concurrency}")
    resolver = resolver or Resolver()
    if out is None:
        out = sys.stdout
    queue = asyncio.Queue(maxsize=concurrency)
    written = 0

    async def worker():
        nonlocal written
        dialer = dialer_factory()
        while True:
            domain = await queue.get()
            try:
                if domain is _END:
                    return
                try:
                    result = await classify(domain, resolver, dialer, debug)
                except Exception as e:
                    # a dead worker would leave the producer blocked on a full queue
                    print(f"{domain}: unexpected error: {e!r}", file=sys.stderr)
                    result = degraded(domain)
                print(result.url, file=out)
                written += 1
            finally:
                queue.task_done()

    tasks = [asyncio.create_task(worker()) for _ in range(concurrency)]
    try:
        for domain in domains:
            await queue.put(domain)
        for _ in tasks:
            await queue.put(_END)
        await asyncio.gather(*tasks)
    finally:
        for t in tasks:
            t.cancel()
    return written

# ---------------------------
# Command line
# ---------------------------

def read_domains(fh):
    """Yield one domain per line until a blank line or end of input."""
    for line in fh:
        domain = line.rstrip("\r\n")
        if not domain:
            return
        yield domain


def positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value}")
    return n


def add_pool_arguments(ap: argparse.ArgumentParser):
    ap.add_argument("--concurrency", type=positive_int, default=DEFAULT_CONCURRENCY, help="Concurrent resolvers")
    ap.add_argument("--debug", action="store_true", help="Debugging output on stderr")
    ap.add_argument("--dns-timeout", type=float, default=DNS_TIMEOUT, help="Per-attempt DNS timeout (seconds)")
    ap.add_argument("--tls-timeout", type=float, default=TLS_TIMEOUT, help="TLS connect + handshake timeout (seconds)")


def run_from_args(domains, args, out=None) -> int:
    resolver = Resolver(timeout=args.dns_timeout)
    return asyncio.run(run(
        domains,
        args.concurrency,
        resolver=resolver,
        dialer_factory=lambda: Dialer(timeout=args.tls_timeout),
        out=out,
        debug=sys.stderr if args.debug else None,
    ))


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Read a domain file and emit clean URLs.")
    ap.add_argument("path", help="File with one domain per line")
    add_pool_arguments(ap)
    args = ap.parse_args(argv)

    try:
        # undecodable bytes become U+FFFD; the line still gets its http:// guess
        fh = open(args.path, "r", encoding="utf-8", errors="replace")
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    try:
        with fh:
            run_from_args(read_domains(fh), args)
    except KeyboardInterrupt:
        print("\nInterrupted by user.", file=sys.stderr)
        return 130
    return 0

if __name__ == "__main__":
    sys.exit(main())
