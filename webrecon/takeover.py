"""Subdomain takeover heuristics.

An ordered table of hosting providers, each identified by DNS evidence (CNAME
suffix, exact CNAME or a known address) and judged abandoned by a fingerprint
in the served body. The first provider whose DNS condition holds decides the
outcome for a page; later entries are never consulted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Tuple

TAKEOVER_TAG = 'Domain Takeover'


@dataclass(frozen=True)
class ProviderRule:
    name: str
    link: str
    remediation: str
    cname_suffixes: Tuple[str, ...] = ()
    cnames: Tuple[str, ...] = ()
    addrs: FrozenSet[str] = frozenset()
    fingerprints: Tuple[str, ...] = ()
    # vulnerable when the stored body is empty instead of carrying a marker
    empty_body: bool = False

    def identifies(self, cname: str, addrs: Iterable[str]) -> bool:
        cname = normalize_cname(cname)
        if cname:
            if cname in self.cnames:
                return True
            if any(cname.endswith(suffix) for suffix in self.cname_suffixes):
                return True
        if self.addrs and any(a in self.addrs for a in addrs):
            return True
        return False

    def is_vulnerable(self, body: str) -> bool:
        if self.empty_body:
            return body == ''
        return any(fp in body for fp in self.fingerprints)


@dataclass(frozen=True)
class TakeoverResult:
    provider: ProviderRule
    vulnerable: bool


PROVIDERS: Tuple[ProviderRule, ...] = (
    ProviderRule(
        name='GitHub Pages',
        link='https://pages.github.com/',
        remediation='https://help.github.com/articles/using-a-custom-domain-with-github-pages/',
        addrs=frozenset({'185.199.108.153', '185.199.109.153', '185.199.110.153', '185.199.111.153'}),
        fingerprints=(
            "There isn't a GitHub Pages site here.",
            'For root URLs (like http://example.com/) you must provide an index.html file',
        ),
    ),
    ProviderRule(
        name='Amazon S3',
        link='https://aws.amazon.com/s3/',
        remediation='https://docs.aws.amazon.com/AmazonS3/latest/dev/website-hosting-custom-domain-walkthrough.html',
        cname_suffixes=('.amazonaws.com.',),
        fingerprints=('NoSuchBucket', 'The specified bucket does not exist'),
    ),
    ProviderRule(
        name='Campaign Monitor',
        link='https://www.campaignmonitor.com/',
        remediation='https://help.campaignmonitor.com/custom-domain-names',
        cnames=('cname.createsend.com.',),
        fingerprints=('Double check the URL or ',),
    ),
    ProviderRule(
        name='Cargo Collective',
        link='https://cargocollective.com/',
        remediation='https://support.2.cargocollective.com/Using-a-Third-Party-Domain',
        cnames=('subdomain.cargocollective.com.',),
        fingerprints=('404 Not Found',),
    ),
    ProviderRule(
        name='FeedPress',
        link='https://feed.press/',
        remediation='https://support.feed.press/article/61-how-to-create-a-custom-hostname',
        cnames=('redirect.feedpress.me.',),
        fingerprints=('The feed has not been found.',),
    ),
    ProviderRule(
        name='Ghost',
        link='https://ghost.org/',
        remediation='https://docs.ghost.org/faq/using-custom-domains/',
        cname_suffixes=('.ghost.io.',),
        fingerprints=('The thing you were looking for is no longer here, or never was',),
    ),
    ProviderRule(
        name='Helpjuice',
        link='https://helpjuice.com/',
        remediation='https://help.helpjuice.com/34339-getting-started/custom-domain',
        cname_suffixes=('.helpjuice.com.',),
        fingerprints=("We could not find what you're looking for.",),
    ),
    ProviderRule(
        name='HelpScout',
        link='https://www.helpscout.net/',
        remediation='https://docs.helpscout.net/article/42-setup-custom-domain',
        cname_suffixes=('.helpscoutdocs.com.',),
        fingerprints=('No settings were found for this company:',),
    ),
    ProviderRule(
        name='Heroku',
        link='https://www.heroku.com/',
        remediation='https://devcenter.heroku.com/articles/custom-domains',
        cname_suffixes=('.herokudns.com.', '.herokuapp.com.', '.herokussl.com.'),
        fingerprints=('No such app',),
    ),
    ProviderRule(
        name='JetBrains',
        link='https://www.jetbrains.com/',
        remediation='https://www.jetbrains.com/help/youtrack/incloud/Domain-Settings.html#use-custom-domain-name',
        cname_suffixes=('.myjetbrains.com.',),
        fingerprints=('is not a registered InCloud YouTrack',),
    ),
    ProviderRule(
        name='Microsoft Azure',
        link='https://azure.microsoft.com/',
        remediation='https://docs.microsoft.com/en-us/azure/app-service/app-service-web-tutorial-custom-domain',
        cname_suffixes=('.azurewebsites.net.',),
        fingerprints=('404 Web Site not found',),
    ),
    ProviderRule(
        name='Readme',
        link='https://readme.io/',
        remediation='https://readme.readme.io/docs/setting-up-custom-domain',
        cname_suffixes=('.readme.io.', '.readmessl.com.'),
        fingerprints=('Project doesnt exist... yet!',),
    ),
    ProviderRule(
        name='Surge',
        link='https://surge.sh/',
        remediation='https://surge.sh/help/adding-a-custom-domain',
        cnames=('na-west1.surge.sh.',),
        addrs=frozenset({'45.55.110.124'}),
        fingerprints=('project not found',),
    ),
    ProviderRule(
        name='Tumblr',
        link='https://www.tumblr.com/',
        remediation='https://tumblr.zendesk.com/hc/en-us/articles/231256548-Custom-domains',
        cnames=('domains.tumblr.com.',),
        addrs=frozenset({'66.6.44.4'}),
        fingerprints=("Whatever you were looking for doesn't currently exist at this address",),
    ),
    ProviderRule(
        name='UserVoice',
        link='https://www.uservoice.com/',
        remediation='https://developer.uservoice.com/docs/site/domain-aliasing/',
        cname_suffixes=('.uservoice.com.',),
        fingerprints=('This UserVoice subdomain is currently available!',),
    ),
    ProviderRule(
        name='WordPress',
        link='https://wordpress.com/',
        remediation='https://en.support.wordpress.com/domains/map-subdomain/',
        cname_suffixes=('.wordpress.com.',),
        fingerprints=('Do you want to register',),
    ),
    ProviderRule(
        name='SmugMug',
        link='https://www.smugmug.com/',
        remediation='https://help.smugmug.com/use-a-custom-domain-BymMexwJVHG',
        cnames=('domains.smugmug.com.',),
        empty_body=True,
    ),
    ProviderRule(
        name='Strikingly',
        link='https://www.strikingly.com/',
        remediation='https://support.strikingly.com/hc/en-us/articles/215046947-Connect-Custom-Domain',
        cname_suffixes=('.s.strikinglydns.com.',),
        addrs=frozenset({'54.183.102.22'}),
        fingerprints=("But if you're looking to build your own website,",),
    ),
    ProviderRule(
        name='UptimeRobot',
        link='https://uptimerobot.com/',
        remediation='https://blog.uptimerobot.com/introducing-public-status-pages-yay/',
        cnames=('stats.uptimerobot.com.',),
        fingerprints=('This public status page <b>does not seem to exist</b>.',),
    ),
    ProviderRule(
        name='Pantheon',
        link='https://pantheon.io/',
        remediation='https://pantheon.io/docs/domains/',
        cname_suffixes=('.pantheonsite.io.',),
        fingerprints=('The gods are wise',),
    ),
)


def normalize_cname(cname: str) -> str:
    """Lower-case, fully qualified (trailing dot) form of ``cname``."""
    c = (cname or '').strip().lower()
    if c and not c.endswith('.'):
        c += '.'
    return c


def identify(cname: str, addrs: Iterable[str],
             providers: Tuple[ProviderRule, ...] = PROVIDERS) -> Optional[ProviderRule]:
    addr_list: List[str] = list(addrs or [])
    for provider in providers:
        if provider.identifies(cname, addr_list):
            return provider
    return None


def evaluate(cname: str, addrs: Iterable[str], body: str,
             providers: Tuple[ProviderRule, ...] = PROVIDERS) -> Optional[TakeoverResult]:
    """Walk ``providers`` in order and stop at the first identified one."""
    provider = identify(cname, addrs, providers)
    if provider is None:
        return None
    return TakeoverResult(provider, provider.is_vulnerable(body or ''))
