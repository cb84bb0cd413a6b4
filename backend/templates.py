"""
Starter roadmaps, generated in bulk for a chosen career goal.
"""
from datetime import date, timedelta

# (phase, title, description, months from today)
ROADMAP_TEMPLATES: dict[str, list[tuple[str, str, str, int]]] = {
    "PhD in Cyber Security": [
        ("Foundation", "Complete Current Degree", "Finish your current education with good grades", 12),
        ("Foundation", "Learn Programming Basics", "Python, C, JavaScript fundamentals", 6),
        ("Foundation", "Networking Fundamentals", "TCP/IP, OSI Model, Network protocols", 8),
        ("Skills Building", "Linux Mastery", "Master Linux commands and system administration", 10),
        ("Skills Building", "Web Security Basics", "OWASP Top 10, SQL Injection, XSS attacks", 14),
        ("Skills Building", "Practice on CTF Platforms", "TryHackMe, HackTheBox, PicoCTF", 16),
        ("Certifications", "CEH Certification", "Certified Ethical Hacker certification", 24),
        ("Certifications", "OSCP Certification", "Offensive Security Certified Professional", 30),
        ("Masters Prep", "GATE/GRE Preparation", "Prepare for entrance exams", 36),
        ("Masters", "M.Tech/MS in Cyber Security", "Complete Master's degree with research focus", 60),
        ("PhD Prep", "Research Paper Publication", "Publish papers in security conferences", 66),
        ("PhD Prep", "PhD Entrance & Admission", "Apply and get admitted to PhD program", 72),
        ("PhD", "PhD Coursework", "Complete PhD coursework requirements", 84),
        ("PhD", "Thesis Research", "Complete doctoral thesis research", 108),
        ("PhD", "PhD Defense & Completion", "Defend thesis and earn PhD degree", 120),
    ],
    "Master's in Cyber Security": [
        ("Foundation", "Complete Current Degree", "Finish your current education with good grades", 12),
        ("Foundation", "Learn Programming Basics", "Python, C, JavaScript fundamentals", 6),
        ("Skills Building", "Networking & Linux", "Master networking and Linux administration", 10),
        ("Skills Building", "Web Security Basics", "OWASP Top 10, common vulnerabilities", 14),
        ("Certifications", "CompTIA Security+", "Entry-level security certification", 18),
        ("Entrance Prep", "GATE/GRE Preparation", "Prepare for entrance exams", 24),
        ("Masters", "M.Tech/MS in Cyber Security", "Complete Master's degree", 48),
    ],
    "CEH Certification": [
        ("Foundation", "Networking Basics", "TCP/IP, protocols, network architecture", 2),
        ("Foundation", "Linux Fundamentals", "Linux commands and administration", 3),
        ("Preparation", "CEH Study Material", "EC-Council official courseware", 4),
        ("Preparation", "Practice Labs", "Hands-on practice with hacking techniques", 5),
        ("Certification", "CEH Exam", "Pass the CEH certification exam", 6),
    ],
    "OSCP Certification": [
        ("Foundation", "Linux Mastery", "Advanced Linux skills required", 2),
        ("Foundation", "Programming Skills", "Python and Bash scripting", 3),
        ("Preparation", "PWK Course", "Penetration Testing with Kali Linux", 6),
        ("Preparation", "Lab Practice", "Complete all PWK lab machines", 9),
        ("Certification", "OSCP Exam", "24-hour practical exam", 12),
    ],
    "default": [
        ("Foundation", "Complete Current Education", "Finish your current degree/diploma", 12),
        ("Skills Building", "Core Technical Skills", "Programming, networking, and system fundamentals", 18),
        ("Career Prep", "Build Portfolio", "Create projects and gain practical experience", 24),
        ("Career", "Achieve Your Goal", "Land your dream role", 36),
    ],
}


def template_for(goal: str) -> list[tuple[str, str, str, int]]:
    return ROADMAP_TEMPLATES.get(goal) or ROADMAP_TEMPLATES["default"]


def build_roadmap(goal: str, today: date | None = None) -> list[dict]:
    """Milestone fields for `goal`, numbered by position within each phase."""
    today = today or date.today()
    next_order: dict[str, int] = {}
    rows = []
    for phase, title, description, months in template_for(goal):
        order = next_order.get(phase, 0)
        next_order[phase] = order + 1
        rows.append({
            "phase": phase,
            "title": title,
            "description": description,
            "target_date": today + timedelta(days=months * 30),
            "display_order": order,
        })
    return rows
