"""Default set of tracked distributions."""

from typing import NamedTuple


class SeedDistribution(NamedTuple):
    name: str
    slug: str
    homepage: str
    github_org: str | None
    subreddit: str | None


DEFAULT_DISTRIBUTIONS: tuple[SeedDistribution, ...] = (
    # Independent
    SeedDistribution("Arch Linux", "arch", "https://archlinux.org", "archlinux", "archlinux"),
    SeedDistribution("Debian", "debian", "https://debian.org", None, "debian"),
    SeedDistribution("Fedora", "fedora", "https://fedoraproject.org", "fedora-infra", "Fedora"),
    SeedDistribution("openSUSE", "opensuse", "https://opensuse.org", "openSUSE", "openSUSE"),
    SeedDistribution("Gentoo", "gentoo", "https://gentoo.org", "gentoo", "Gentoo"),
    SeedDistribution("Slackware", "slackware", "http://www.slackware.com", None, "slackware"),
    SeedDistribution("Void Linux", "void", "https://voidlinux.org", "void-linux", "voidlinux"),
    SeedDistribution("Alpine Linux", "alpine", "https://alpinelinux.org", "alpinelinux", "alpinelinux"),
    SeedDistribution("NixOS", "nixos", "https://nixos.org", "NixOS", "NixOS"),
    SeedDistribution("Solus", "solus", "https://getsol.us", "getsolus", "SolusProject"),
    SeedDistribution("Mageia", "mageia", "https://www.mageia.org", None, None),
    # Debian-based
    SeedDistribution("Ubuntu", "ubuntu", "https://ubuntu.com", "ubuntu", "Ubuntu"),
    SeedDistribution("Linux Mint", "mint", "https://linuxmint.com", "linuxmint", "linuxmint"),
    SeedDistribution("Pop!_OS", "popos", "https://pop.system76.com", "pop-os", "pop_os"),
    SeedDistribution("elementary OS", "elementary", "https://elementary.io", "elementary", "elementaryos"),
    SeedDistribution("Zorin OS", "zorin", "https://zorin.com/os", None, "zorinos"),
    SeedDistribution("MX Linux", "mxlinux", "https://mxlinux.org", "MX-Linux", "MXLinux"),
    SeedDistribution("Kali Linux", "kali", "https://www.kali.org", "kalilinux", "Kalilinux"),
    SeedDistribution("Parrot OS", "parrot", "https://www.parrotsec.org", "ParrotSec", "ParrotOS"),
    SeedDistribution("Tails", "tails", "https://tails.net", None, "tails"),
    SeedDistribution("Raspberry Pi OS", "raspios", "https://www.raspberrypi.com/software", "RPi-Distro", "raspberry_pi"),
    SeedDistribution("Deepin", "deepin", "https://www.deepin.org", "linuxdeepin", "deepin"),
    SeedDistribution("Devuan", "devuan", "https://www.devuan.org", None, "Devuan"),
    # Arch-based
    SeedDistribution("Manjaro", "manjaro", "https://manjaro.org", "manjaro", "ManjaroLinux"),
    SeedDistribution("EndeavourOS", "endeavouros", "https://endeavouros.com", "endeavouros-team", "EndeavourOS"),
    SeedDistribution("Garuda Linux", "garuda", "https://garudalinux.org", "garuda-linux", "GarudaLinux"),
    SeedDistribution("Artix Linux", "artix", "https://artixlinux.org", "artix-linux", "artixlinux"),
    SeedDistribution("CachyOS", "cachyos", "https://cachyos.org", "CachyOS", "cachyos"),
    # RPM-based
    SeedDistribution("Rocky Linux", "rocky", "https://rockylinux.org", "rocky-linux", "RockyLinux"),
    SeedDistribution("AlmaLinux", "almalinux", "https://almalinux.org", "AlmaLinux", "AlmaLinux"),
    SeedDistribution("CentOS Stream", "centosstream", "https://www.centos.org", None, "CentOS"),
    SeedDistribution("Nobara", "nobara", "https://nobaraproject.org", "Nobara-Project", "NobaraProject"),
    SeedDistribution("Bazzite", "bazzite", "https://bazzite.gg", "ublue-os", "bazzite"),
    # Immutable
    SeedDistribution("Vanilla OS", "vanillaos", "https://vanillaos.org", "Vanilla-OS", "vanillaos"),
    SeedDistribution("blendOS", "blendos", "https://blendos.co", "blend-os", "blendos"),
    # Specialized
    SeedDistribution("Qubes OS", "qubes", "https://www.qubes-os.org", "QubesOS", "Qubes"),
    SeedDistribution("Whonix", "whonix", "https://www.whonix.org", "Whonix", "Whonix"),
    SeedDistribution("Bedrock Linux", "bedrock", "https://bedrocklinux.org", "bedrocklinux", "bedrocklinux"),
    SeedDistribution("Guix System", "guix", "https://guix.gnu.org", None, "GUIX"),
    SeedDistribution("Chimera Linux", "chimera", "https://chimera-linux.org", "chimera-linux", None),
)
