"""Broken internal link detection over a generated site."""
from pathlib import Path

from bs4 import BeautifulSoup


def is_internal_link(url):
    """Check if a URL is an internal link (not external or data/mailto/etc)"""
    if not url:
        return False
    # External URLs, data URLs, mailto and anchor-only links are not checked
    return not url.startswith(('http://', 'https://', 'mailto:', 'tel:', 'data:', '//', '#'))


def resolve_link_path(current_file_dir, link_url, build_dir):
    """Resolve a relative or root-relative link to a file path in the build directory"""
    link_path = link_url.split('?')[0].split('#')[0]
    if link_path.startswith('/'):
        target_path = build_dir / link_path.lstrip('/')
    else:
        target_path = current_file_dir / link_path

    # Directory links are served by their index.html
    if target_path.is_dir():
        return target_path / 'index.html'
    return target_path


def check_broken_links(build_dir):
    """Return every internal <a href> and <img src> whose target is missing"""
    build_dir = Path(build_dir)
    broken_links = []

    for html_file in sorted(build_dir.rglob("*.html")):
        relative_path = html_file.relative_to(build_dir)
        soup = BeautifulSoup(html_file.read_text(encoding='utf-8'), 'html.parser')

        targets = [('Internal Link', a['href']) for a in soup.find_all('a', href=True)]
        targets += [('Image', img['src']) for img in soup.find_all('img', src=True)]

        for link_type, url in targets:
            if not is_internal_link(url):
                continue
            target_path = resolve_link_path(html_file.parent, url, build_dir)
            if not target_path.exists():
                broken_links.append({
                    'type': link_type,
                    'url': url,
                    'source_file': relative_path.as_posix(),
                })

    return broken_links


def print_broken_links(broken_links):
    """Print a link check report"""
    print("\n" + "=" * 50)
    print("BROKEN LINK CHECK")
    print("=" * 50)
    if not broken_links:
        print("[INFO] No broken internal links found")
        return
    for link in broken_links:
        print(f"[WARNING] {link['type']} {link['url']} in {link['source_file']}")
    print(f"[WARNING] {len(broken_links)} broken link(s) found")
